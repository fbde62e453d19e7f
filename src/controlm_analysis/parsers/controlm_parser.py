"""
Control-M Parser Module

Parses Control-M XML exports (FOLDER, SMART_FOLDER, TABLE, SMART_TABLE) into
the domain model.
"""

import gzip
import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config import get_config
from ..domain.actions import Action, ConditionAction, DoAction, ForceJob, Mail, SetVariable, Shout
from ..domain.entities import (
    Condition,
    ControlResource,
    Folder,
    FolderType,
    Job,
    OnCondition,
    QuantitativeResource,
)
from ..errors import CatalogIOError, CatalogParseError

logger = logging.getLogger(__name__)

# Every code point below 0x20 except TAB, LF and CR
_ILLEGAL_XML_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')

FOLDER_TAGS = {
    'FOLDER': FolderType.SIMPLE,
    'SMART_FOLDER': FolderType.SMART,
    'TABLE': FolderType.TABLE,
    'SMART_TABLE': FolderType.SMART_TABLE,
}

MONTHS = ['JAN', 'FEB', 'MAR', 'APR', 'MAY', 'JUN',
          'JUL', 'AUG', 'SEP', 'OCT', 'NOV', 'DEC']

# JOB attribute -> Job field
JOB_ATTRIBUTES = {
    'APPLICATION': 'application',
    'SUB_APPLICATION': 'sub_application',
    'APPL_TYPE': 'appl_type',
    'APPL_VER': 'appl_ver',
    'DESCRIPTION': 'description',
    'OWNER': 'owner',
    'RUN_AS': 'run_as',
    'PRIORITY': 'priority',
    'TASKTYPE': 'task_type',
    'NODEID': 'node_id',
    'CMDLINE': 'cmdline',
    'CREATED_BY': 'created_by',
    'CREATION_DATE': 'creation_date',
    'CHANGE_USERID': 'change_userid',
    'CHANGE_DATE': 'change_date',
}

# JOB attribute -> SchedulingInfo field
SCHEDULING_ATTRIBUTES = {
    'TIMEFROM': 'time_from',
    'TIMETO': 'time_to',
    'DAYS': 'days',
    'WEEKDAYS': 'weekdays',
    'DAYSCAL': 'days_calendar',
    'WEEKSCAL': 'weeks_calendar',
    'CONFCAL': 'conf_calendar',
    'INTERVAL': 'interval',
}

# Attributes consumed by typed fields; everything else lands in Job.metadata
_MAPPED_JOB_ATTRIBUTES = (
    set(JOB_ATTRIBUTES) | set(SCHEDULING_ATTRIBUTES) | set(MONTHS)
    | {'JOBNAME', 'CRITICAL', 'CYCLIC', 'MAXWAIT', 'MAXRERUN',
       'CYCLIC_INTERVAL_SEQUENCE', 'CYCLIC_TIMES_SEQUENCE'}
)


class ControlMParser:
    """Parser for Control-M XML job catalogs."""

    def __init__(self, encoding: str = None, max_file_size_mb: int = None):
        parser_config = get_config().parser
        self.encoding = encoding or parser_config.get('encoding', 'cp1252')
        self.max_file_size_mb = max_file_size_mb or parser_config.get('max_file_size_mb', 510)
        self.parse_stats: Dict[str, int] = {}

    def parse_file(self, file_path: Union[str, Path]) -> List[Folder]:
        """Parse a catalog file (.xml or .xml.gz)."""
        file_path = Path(file_path)
        try:
            file_size_mb = file_path.stat().st_size / (1024 * 1024)
            if file_size_mb > self.max_file_size_mb:
                logger.warning(f"Large file detected: {file_path.name} ({file_size_mb:.1f} MB)")

            if file_path.suffix == '.gz':
                with gzip.open(file_path, 'rb') as f:
                    data = f.read()
            else:
                data = file_path.read_bytes()
        except (OSError, EOFError) as e:
            raise CatalogIOError(file_path, f"Failed to read catalog: {e}") from e

        logger.info(f"Read {len(data)} bytes from {file_path}")
        return self.parse_bytes(data, source=file_path)

    def parse_bytes(self, data: bytes, source: Optional[Union[str, Path]] = None) -> List[Folder]:
        """Decode a raw byte buffer and parse it."""
        try:
            text = data.decode(self.encoding, errors='replace')
        except LookupError as e:
            raise CatalogIOError(source or '<memory>', f"Unknown encoding {self.encoding!r}") from e
        return self.parse_string(text, source=source)

    def parse_string(self, xml_content: str, source: Optional[Union[str, Path]] = None) -> List[Folder]:
        """Parse decoded catalog text into folders."""
        self.parse_stats = {'folders': 0, 'jobs': 0, 'skipped_folders': 0,
                            'skipped_jobs': 0, 'skipped_records': 0}

        try:
            root = ET.fromstring(self.sanitize_xml(xml_content))
        except ET.ParseError as e:
            raise CatalogParseError(source, str(e), getattr(e, 'position', None)) from e

        folders = []
        for node in root:
            folder_type = FOLDER_TAGS.get(node.tag)
            if folder_type is None:
                continue
            folder = self._parse_folder_safely(node, folder_type)
            if folder is not None:
                folders.append(folder)

        logger.info(f"Parsed {self.parse_stats['folders']} folders, {self.parse_stats['jobs']} jobs")
        if self.parse_stats['skipped_jobs'] or self.parse_stats['skipped_folders']:
            logger.warning(
                f"Skipped {self.parse_stats['skipped_folders']} folders and "
                f"{self.parse_stats['skipped_jobs']} jobs with mapping errors"
            )
        return folders

    @staticmethod
    def sanitize_xml(xml_content: str) -> str:
        """Strip control characters that are illegal in XML 1.0."""
        return _ILLEGAL_XML_CHARS.sub('', xml_content)

    def _parse_folder_safely(self, node: ET.Element, folder_type: FolderType) -> Optional[Folder]:
        try:
            return self._parse_folder(node, folder_type)
        except (ValueError, TypeError) as e:
            self.parse_stats['skipped_folders'] += 1
            logger.warning(f"Skipping folder {node.get('FOLDER_NAME') or node.get('TABLE_NAME')}: {e}")
            return None

    def _parse_folder(self, node: ET.Element, folder_type: FolderType) -> Folder:
        folder_name = node.get('FOLDER_NAME') or node.get('TABLE_NAME') or 'UNKNOWN'
        folder = Folder(
            folder_name=folder_name,
            folder_type=folder_type,
            datacenter=node.get('DATACENTER'),
            application=node.get('APPLICATION'),
            description=node.get('DESCRIPTION'),
            owner=node.get('OWNER'),
        )

        for child in node:
            if child.tag == 'JOB':
                try:
                    folder.add_job(self._parse_job(child, folder_name))
                    self.parse_stats['jobs'] += 1
                except (ValueError, TypeError) as e:
                    self.parse_stats['skipped_jobs'] += 1
                    logger.warning(f"Skipping job {child.get('JOBNAME')} in {folder_name}: {e}")
            elif child.tag == 'SUB_FOLDER' and folder_type.is_smart:
                sub_folder = self._parse_folder_safely(child, folder_type)
                if sub_folder is not None:
                    folder.add_sub_folder(sub_folder)

        self.parse_stats['folders'] += 1
        logger.debug(f"Folder {folder_name}: {len(folder.jobs)} jobs, {len(folder.sub_folders)} sub-folders")
        return folder

    def _parse_job(self, node: ET.Element, folder_name: str) -> Job:
        job = Job(job_name=node.get('JOBNAME') or 'UNKNOWN', folder_name=folder_name)

        for attribute, field_name in JOB_ATTRIBUTES.items():
            setattr(job, field_name, node.get(attribute))
        job.critical = node.get('CRITICAL') == 'Y'
        job.cyclic = node.get('CYCLIC') == 'Y'

        self._parse_scheduling(node, job)
        job.metadata = {
            key: value for key, value in node.attrib.items()
            if key not in _MAPPED_JOB_ATTRIBUTES
        }

        for child in node:
            handler = self._CHILD_HANDLERS.get(child.tag)
            if handler is not None:
                handler(self, child, job)

        return job

    def _parse_scheduling(self, node: ET.Element, job: Job):
        scheduling = job.scheduling
        for attribute, field_name in SCHEDULING_ATTRIBUTES.items():
            setattr(scheduling, field_name, node.get(attribute))

        scheduling.months = [month for month in MONTHS if node.get(month) == '1']
        scheduling.max_wait = _parse_int(node.get('MAXWAIT'))
        scheduling.max_rerun = _parse_int(node.get('MAXRERUN'))

        # A bare INTERVAL is exported on every job; it only means something for cyclic ones
        scheduling.cyclic_interval = node.get('CYCLIC_INTERVAL_SEQUENCE') or (
            scheduling.interval if job.cyclic else None
        )
        scheduling.cyclic_times = node.get('CYCLIC_TIMES_SEQUENCE')

    def _skip_record(self, node: ET.Element, job: Job):
        self.parse_stats['skipped_records'] += 1
        logger.debug(f"Job {job.job_name}: ignoring {node.tag} without NAME")

    def _parse_in_condition(self, node: ET.Element, job: Job):
        name = node.get('NAME')
        if not name:
            return self._skip_record(node, job)
        job.in_conditions.append(
            Condition.incoming(name, odate=node.get('ODATE'), and_or=node.get('AND_OR'))
        )

    def _parse_out_condition(self, node: ET.Element, job: Job):
        name = node.get('NAME')
        if not name:
            return self._skip_record(node, job)
        job.out_conditions.append(
            Condition.outgoing(name, odate=node.get('ODATE'), sign=node.get('SIGN'))
        )

    def _parse_control_resource(self, node: ET.Element, job: Job):
        name = node.get('NAME')
        if not name:
            return self._skip_record(node, job)
        job.control_resources.append(
            ControlResource(name, resource_type=node.get('TYPE'), on_fail=node.get('ONFAIL'))
        )

    def _parse_quantitative_resource(self, node: ET.Element, job: Job):
        name = node.get('NAME')
        if not name:
            return self._skip_record(node, job)
        quantity = _parse_int(node.get('QUANT'))
        job.quantitative_resources.append(QuantitativeResource(
            name,
            quantity=1 if quantity is None else quantity,
            on_fail=node.get('ONFAIL'),
            on_ok=node.get('ONOK'),
        ))

    def _parse_variable(self, node: ET.Element, job: Job):
        name = node.get('NAME')
        if not name:
            return self._skip_record(node, job)
        job.variables[name] = node.get('VALUE', '')

    def _parse_auto_edit(self, node: ET.Element, job: Job):
        name = node.get('NAME')
        if not name:
            return self._skip_record(node, job)
        job.auto_edits[name] = node.get('VALUE', '')

    def _parse_on_condition(self, node: ET.Element, job: Job):
        on_condition = OnCondition(
            stmt=node.get('STMT'),
            code=node.get('CODE'),
            pattern=node.get('PATTERN'),
        )
        for child in node:
            action = self._parse_do_action(child)
            if action is not None:
                on_condition.actions.append(action)
        job.on_conditions.append(on_condition)

    @staticmethod
    def _parse_do_action(node: ET.Element) -> Optional[DoAction]:
        """Map one child of an ON element to a DoAction, or None if unusable."""
        tag = node.tag
        if tag == 'DOACTION' and node.get('ACTION'):
            return Action(node.get('ACTION'))
        if tag == 'DOCOND' and node.get('NAME'):
            return ConditionAction(node.get('NAME'), node.get('SIGN'))
        if tag == 'DOFORCEJOB' and node.get('NAME'):
            return ForceJob(node.get('NAME'), node.get('TABLE_NAME'))
        if tag == 'DOMAIL' and node.get('DEST'):
            return Mail(node.get('DEST'), node.get('MESSAGE'))
        if tag == 'DOSHOUT' and node.get('DEST'):
            return Shout(node.get('DEST'), node.get('MESSAGE'))
        if tag == 'DOAUTOEDIT' and node.get('EXP'):
            name, _, value = node.get('EXP').partition('=')
            return SetVariable(name.strip(), value.strip() or None)
        return None

    _CHILD_HANDLERS: Dict[str, Any] = {
        'INCOND': _parse_in_condition,
        'OUTCOND': _parse_out_condition,
        'CONTROL': _parse_control_resource,
        'QUANTITATIVE': _parse_quantitative_resource,
        'VARIABLE': _parse_variable,
        'AUTOEDIT2': _parse_auto_edit,
        'ON': _parse_on_condition,
    }


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None
