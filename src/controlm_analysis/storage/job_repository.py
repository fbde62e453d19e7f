"""
Job Repository Module

Read-only queries over the catalog database: paginated search, job detail,
dashboard aggregates, filter options, CSV export and per-job dependency graphs.
"""

import csv
import io
import logging
import sqlite3
import threading
from collections import deque
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import CatalogIOError, CatalogStoreError
from .schema import MEMORY, SCHEMA_SQL, connect

logger = logging.getLogger(__name__)

# Suffixes stripped from an in-condition name to find the job that produces it,
# in order of preference
CONDITION_SUFFIXES = ('-ENDED-OK', '-ENDED-NOTOK', '-ENDED', '-OK', '-NOTOK')

NODE_COLORS = {
    'current': 'green',
    'incoming': 'blue',
    'outgoing': 'orange',
}

SORTABLE_COLUMNS = {
    'id': 'j.id',
    'job_name': 'j.job_name',
    'folder_name': 'j.folder_name',
    'application': 'j.application',
    'sub_application': 'j.sub_application',
    'appl_type': 'j.appl_type',
    'appl_ver': 'j.appl_ver',
    'task_type': 'j.task_type',
    'owner': 'j.owner',
    'priority': 'j.priority',
    'critical': 'j.critical',
    'cyclic': 'j.cyclic',
    'in_conditions_count': 'in_conditions_count',
    'out_conditions_count': 'out_conditions_count',
    'control_resources_count': 'control_resources_count',
    'variables_count': 'variables_count',
}

FILE_TRANSFER_APPL_TYPES = ('FILE_TRANS', 'FileWatch')
CLI_TASK_TYPES = ('Command', 'Script')

_JOB_COLUMNS = """
    j.id, j.job_name, j.folder_name, j.application, j.sub_application,
    j.appl_type, j.appl_ver, j.description, j.owner, j.run_as, j.priority,
    j.critical, j.task_type, j.cyclic, j.node_id, j.cmdline,
    (SELECT COUNT(*) FROM in_conditions WHERE job_id = j.id) AS in_conditions_count,
    (SELECT COUNT(*) FROM out_conditions WHERE job_id = j.id) AS out_conditions_count,
    (SELECT COUNT(*) FROM control_resources WHERE job_id = j.id) AS control_resources_count,
    (SELECT COUNT(*) FROM job_variables WHERE job_id = j.id) AS variables_count
"""

CSV_COLUMNS = [
    'job_name', 'folder_name', 'application', 'sub_application', 'appl_type', 'appl_ver',
    'task_type', 'critical', 'cyclic', 'owner', 'priority', 'description', 'cmdline',
]


@dataclass
class JobSearchRequest:
    """Search filters, pagination and sorting; unset filters are ignored."""
    job_name: Optional[str] = None
    folder_name: Optional[str] = None
    application: Optional[str] = None
    appl_type: Optional[str] = None
    appl_ver: Optional[str] = None
    task_type: Optional[str] = None
    critical: Optional[bool] = None
    datacenter: Optional[str] = None
    min_dependencies: Optional[int] = None
    max_dependencies: Optional[int] = None
    min_on_conditions: Optional[int] = None
    max_on_conditions: Optional[int] = None
    has_variables: Optional[bool] = None
    min_variables: Optional[int] = None
    page: int = 1
    per_page: int = 50
    sort_by: str = 'job_name'
    sort_order: str = 'asc'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'JobSearchRequest':
        """Build from a mapping, dropping unknown keys and None values."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})


class JobRepository:
    """
    Query access to a catalog database.

    One connection is shared by all callers; a lock serializes every query.
    """

    def __init__(self, db_path: Union[str, Path] = MEMORY,
                 connection: Optional[sqlite3.Connection] = None):
        self.db_path = str(db_path)
        self._lock = threading.Lock()

        if connection is not None:
            self.conn = connection
            return

        if self.db_path != MEMORY and not Path(self.db_path).exists():
            raise CatalogIOError(self.db_path, "Catalog database not found")
        try:
            self.conn = connect(self.db_path, writer=False)
            if self.db_path == MEMORY:
                self.conn.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to open catalog {self.db_path}: {e}") from e

    def close(self):
        with self._lock:
            self.conn.close()

    def _query(self, sql: str, params: Tuple = ()) -> List[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Catalog query failed: {e}") from e

    def _scalar(self, sql: str, params: Tuple = ()) -> Any:
        rows = self._query(sql, params)
        return rows[0][0] if rows else None

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @staticmethod
    def _build_where_clause(request: JobSearchRequest) -> Tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []

        if request.job_name:
            clauses.append("j.job_name LIKE ?")
            params.append(f"%{request.job_name}%")
        if request.folder_name:
            clauses.append("j.folder_name LIKE ?")
            params.append(f"%{request.folder_name}%")

        for column in ('application', 'appl_type', 'appl_ver', 'task_type'):
            value = getattr(request, column)
            if value:
                clauses.append(f"j.{column} = ?")
                params.append(value)

        if request.critical is not None:
            clauses.append("j.critical = ?")
            params.append(1 if request.critical else 0)
        if request.datacenter:
            clauses.append("j.folder_name IN (SELECT folder_name FROM folders WHERE datacenter = ?)")
            params.append(request.datacenter)

        counted = (
            ('in_conditions', request.min_dependencies, '>='),
            ('in_conditions', request.max_dependencies, '<='),
            ('on_conditions', request.min_on_conditions, '>='),
            ('on_conditions', request.max_on_conditions, '<='),
            ('job_variables', request.min_variables, '>='),
        )
        for table, bound, op in counted:
            if bound is not None:
                clauses.append(f"(SELECT COUNT(*) FROM {table} WHERE {table}.job_id = j.id) {op} ?")
                params.append(bound)

        if request.has_variables is not None:
            exists = "EXISTS" if request.has_variables else "NOT EXISTS"
            clauses.append(f"{exists} (SELECT 1 FROM job_variables WHERE job_variables.job_id = j.id)")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    @staticmethod
    def _sort_clause(request: JobSearchRequest) -> str:
        column = SORTABLE_COLUMNS.get(request.sort_by)
        if column is None:
            logger.warning(f"Unsupported sort column {request.sort_by!r}, sorting by job_name")
            column = SORTABLE_COLUMNS['job_name']
        order = "DESC" if str(request.sort_order).lower() == 'desc' else "ASC"
        return f"ORDER BY {column} {order}, j.id ASC"

    @staticmethod
    def _job_row(row: sqlite3.Row) -> Dict[str, Any]:
        job = dict(row)
        job['critical'] = bool(job.get('critical'))
        job['cyclic'] = bool(job.get('cyclic'))
        return job

    def search_jobs(self, request: Optional[JobSearchRequest] = None) -> Dict[str, Any]:
        """
        Paginated job search.

        Returns:
            {jobs, total, page, per_page, total_pages}
        """
        request = request or JobSearchRequest()
        page = max(1, int(request.page or 1))
        per_page = max(1, int(request.per_page or 50))
        where, params = self._build_where_clause(request)

        with self._lock:
            total = self._scalar(f"SELECT COUNT(*) FROM jobs j {where}", tuple(params))
            rows = self._query(
                f"SELECT {_JOB_COLUMNS} FROM jobs j {where} {self._sort_clause(request)} LIMIT ? OFFSET ?",
                tuple(params) + (per_page, (page - 1) * per_page),
            )

        return {
            'jobs': [self._job_row(row) for row in rows],
            'total': total,
            'page': page,
            'per_page': per_page,
            'total_pages': (total + per_page - 1) // per_page,
        }

    def export_search_to_csv(self, request: Optional[JobSearchRequest] = None) -> str:
        """All jobs matching the filters as CSV text, ordered by job name."""
        request = request or JobSearchRequest()
        where, params = self._build_where_clause(request)
        with self._lock:
            rows = self._query(
                f"SELECT {', '.join('j.' + c for c in CSV_COLUMNS)} FROM jobs j {where} "
                f"ORDER BY j.job_name, j.id",
                tuple(params),
            )

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_COLUMNS)
        for row in rows:
            record = self._job_row(row)
            writer.writerow(['' if record[c] is None else record[c] for c in CSV_COLUMNS])
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Detail
    # ------------------------------------------------------------------

    def get_job_detail(self, job_id: int) -> Optional[Dict[str, Any]]:
        """Job with all of its child records, or None if no such job."""
        with self._lock:
            rows = self._query(f"SELECT {_JOB_COLUMNS} FROM jobs j WHERE j.id = ?", (job_id,))
            if not rows:
                return None

            detail: Dict[str, Any] = {'job': self._job_row(rows[0])}

            scheduling = self._query(
                """
                SELECT time_from, time_to, days_calendar, weeks_calendar, conf_calendar,
                       interval, max_wait, max_rerun, days, weekdays, months,
                       cyclic_interval, cyclic_times
                FROM job_scheduling WHERE job_id = ?
                """,
                (job_id,),
            )
            detail['scheduling'] = dict(scheduling[0]) if scheduling else None

            detail['in_conditions'] = self._records(
                "SELECT condition_name, odate, and_or FROM in_conditions WHERE job_id = ? ORDER BY id",
                job_id,
            )
            detail['out_conditions'] = self._records(
                "SELECT condition_name, odate, sign FROM out_conditions WHERE job_id = ? ORDER BY id",
                job_id,
            )

            on_conditions = []
            for on_row in self._query(
                "SELECT id, stmt, code, pattern FROM on_conditions WHERE job_id = ? ORDER BY id",
                (job_id,),
            ):
                on_condition = dict(on_row)
                on_condition['actions'] = self._records(
                    """
                    SELECT action_type, action_value, additional_data
                    FROM do_actions WHERE on_condition_id = ? ORDER BY id
                    """,
                    on_condition.pop('id'),
                )
                on_conditions.append(on_condition)
            detail['on_conditions'] = on_conditions

            detail['control_resources'] = self._records(
                "SELECT resource_name, resource_type, on_fail FROM control_resources WHERE job_id = ? ORDER BY id",
                job_id,
            )
            detail['quantitative_resources'] = self._records(
                """
                SELECT resource_name, quantity, on_fail, on_ok
                FROM quantitative_resources WHERE job_id = ? ORDER BY id
                """,
                job_id,
            )
            detail['variables'] = self._records(
                "SELECT variable_name AS name, variable_value AS value FROM job_variables WHERE job_id = ? ORDER BY id",
                job_id,
            )
            detail['auto_edits'] = self._records(
                "SELECT edit_name AS name, edit_value AS value FROM job_auto_edits WHERE job_id = ? ORDER BY id",
                job_id,
            )
            detail['metadata'] = self._records(
                "SELECT meta_key AS name, meta_value AS value FROM job_metadata WHERE job_id = ? ORDER BY id",
                job_id,
            )
        return detail

    def _records(self, sql: str, key: int) -> List[Dict[str, Any]]:
        return [dict(row) for row in self._query(sql, (key,))]

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def _grouped(self, expression: str, where: str = "", limit: int = 10) -> List[Dict[str, Any]]:
        rows = self._query(
            f"""
            SELECT {expression} AS name, COUNT(*) AS count FROM jobs {where}
            GROUP BY name ORDER BY count DESC, name ASC LIMIT ?
            """,
            (limit,),
        )
        return [dict(row) for row in rows]

    def dashboard_stats(self) -> Dict[str, Any]:
        """Catalog-wide totals and top-10 groupings."""
        transfer_marks = ', '.join('?' * len(FILE_TRANSFER_APPL_TYPES))
        cli_marks = ', '.join('?' * len(CLI_TASK_TYPES))

        with self._lock:
            return {
                'total_jobs': self._scalar("SELECT COUNT(*) FROM jobs"),
                'total_folders': self._scalar("SELECT COUNT(DISTINCT folder_name) FROM jobs"),
                'critical_jobs': self._scalar("SELECT COUNT(*) FROM jobs WHERE critical = 1"),
                'cyclic_jobs': self._scalar("SELECT COUNT(*) FROM jobs WHERE cyclic = 1"),
                'file_transfer_jobs': self._scalar(
                    f"SELECT COUNT(*) FROM jobs WHERE appl_type IN ({transfer_marks})",
                    FILE_TRANSFER_APPL_TYPES,
                ),
                'cli_jobs': self._scalar(
                    f"SELECT COUNT(*) FROM jobs WHERE task_type IN ({cli_marks}) OR cmdline IS NOT NULL",
                    CLI_TASK_TYPES,
                ),
                'jobs_by_application': self._grouped('application', "WHERE application IS NOT NULL"),
                'jobs_by_folder': self._grouped('folder_name'),
                'jobs_by_task_type': self._grouped("COALESCE(task_type, 'Unknown')"),
            }

    def filter_options(self) -> Dict[str, List[str]]:
        """Distinct values usable as search filters."""
        def distinct(column: str) -> List[str]:
            rows = self._query(
                f"SELECT DISTINCT {column} FROM jobs "
                f"WHERE {column} IS NOT NULL AND {column} != '' ORDER BY {column}"
            )
            return [row[0] for row in rows]

        with self._lock:
            return {
                'applications': distinct('application'),
                'folders': distinct('folder_name'),
                'task_types': distinct('task_type'),
                'owners': distinct('owner'),
                'appl_types': distinct('appl_type'),
                'appl_vers': distinct('appl_ver'),
            }

    # ------------------------------------------------------------------
    # Dependency graph
    # ------------------------------------------------------------------

    _GRAPH_COLUMNS = "j.id, j.job_name, j.folder_name, j.application, j.description"

    def _jobs_named(self, name: str) -> List[sqlite3.Row]:
        return self._query(
            f"SELECT {self._GRAPH_COLUMNS} FROM jobs j WHERE j.job_name = ? ORDER BY j.id", (name,)
        )

    def _producers(self, job_id: int) -> List[sqlite3.Row]:
        """Jobs that satisfy this job's in-conditions."""
        producers: Dict[int, sqlite3.Row] = {}
        for (condition_name,) in self._query(
            "SELECT condition_name FROM in_conditions WHERE job_id = ? ORDER BY id", (job_id,)
        ):
            matches = self._jobs_named(condition_name)
            if not matches:
                base = strip_condition_suffix(condition_name)
                if base != condition_name:
                    matches = self._jobs_named(base)
            for row in matches:
                if row['id'] != job_id:
                    producers.setdefault(row['id'], row)
        return list(producers.values())

    def _consumers(self, job_id: int, job_name: str) -> List[sqlite3.Row]:
        """Jobs holding an in-condition named exactly like this job."""
        return [
            row for row in self._query(
                f"""
                SELECT DISTINCT {self._GRAPH_COLUMNS} FROM jobs j
                JOIN in_conditions ic ON ic.job_id = j.id
                WHERE ic.condition_name = ? ORDER BY j.id
                """,
                (job_name,),
            )
            if row['id'] != job_id
        ]

    @staticmethod
    def _node(row: sqlite3.Row, role: str) -> Dict[str, Any]:
        return {
            'id': row['id'],
            'label': row['job_name'],
            'folder': row['folder_name'],
            'application': row['application'],
            'description': row['description'],
            'color': NODE_COLORS[role],
            'is_current': role == 'current',
        }

    def get_job_graph(self, job_id: int, end_to_end: bool = False) -> Optional[Dict[str, Any]]:
        """
        Dependency neighbourhood of a job, or None if no such job.

        Incoming edges come from jobs whose name matches one of this job's
        in-conditions, exactly or after stripping a completion suffix. Outgoing
        edges go to jobs with an in-condition equal to this job's name. With
        end_to_end the walk continues transitively in both directions.
        """
        with self._lock:
            rows = self._query(f"SELECT {self._GRAPH_COLUMNS} FROM jobs j WHERE j.id = ?", (job_id,))
            if not rows:
                return None
            current = rows[0]

            nodes: Dict[int, Dict[str, Any]] = {current['id']: self._node(current, 'current')}
            edges: Dict[Tuple[int, int, str], Dict[str, Any]] = {}

            def add_edge(source: int, target: int, kind: str):
                edges.setdefault((source, target, kind), {'from': source, 'to': target, 'type': kind})

            # Upstream walk
            queue = deque([current])
            seen = {current['id']}
            while queue:
                job = queue.popleft()
                for producer in self._producers(job['id']):
                    nodes.setdefault(producer['id'], self._node(producer, 'incoming'))
                    add_edge(producer['id'], job['id'], 'in')
                    if end_to_end and producer['id'] not in seen:
                        seen.add(producer['id'])
                        queue.append(producer)

            # Downstream walk
            queue = deque([current])
            seen = {current['id']}
            while queue:
                job = queue.popleft()
                for consumer in self._consumers(job['id'], job['job_name']):
                    nodes.setdefault(consumer['id'], self._node(consumer, 'outgoing'))
                    add_edge(job['id'], consumer['id'], 'out')
                    if end_to_end and consumer['id'] not in seen:
                        seen.add(consumer['id'])
                        queue.append(consumer)

        logger.debug(f"Graph for job {job_id}: {len(nodes)} nodes, {len(edges)} edges")
        return {
            'job_id': current['id'],
            'job_name': current['job_name'],
            'folder_name': current['folder_name'],
            'nodes': list(nodes.values()),
            'edges': list(edges.values()),
        }


def strip_condition_suffix(condition_name: str) -> str:
    """Remove the first matching completion suffix, e.g. PAY_LOAD-ENDED-OK -> PAY_LOAD."""
    for suffix in CONDITION_SUFFIXES:
        if condition_name.endswith(suffix):
            return condition_name[:-len(suffix)]
    return condition_name
