"""
Tests for the Control-M XML parser.
"""

import gzip
import xml.etree.ElementTree as ET

import pytest

from controlm_analysis.domain import ConditionAction, FolderType, Mail, SetVariable
from controlm_analysis.errors import CatalogIOError, CatalogParseError
from controlm_analysis.parsers.controlm_parser import ControlMParser

from conftest import SAMPLE_XML


def _jobs_by_name(folders):
    return {job.job_name: job for folder in folders for job in folder.all_jobs()}


def test_parse_folders(sample_folders):
    assert [f.folder_name for f in sample_folders] == ["PAYROLL", "BILLING"]

    payroll, billing = sample_folders
    assert payroll.folder_type is FolderType.SMART
    assert payroll.datacenter == "DC1"
    assert payroll.description == "Payroll batch"
    assert payroll.owner == "ctmadm"
    assert [sub.folder_name for sub in payroll.sub_folders] == ["PAYROLL_REPORTS"]
    assert payroll.total_jobs() == 3

    assert billing.folder_type is FolderType.SIMPLE
    assert billing.datacenter == "DC2"


def test_parse_job_attributes(sample_folders):
    jobs = _jobs_by_name(sample_folders)
    extract = jobs["PAY_EXTRACT"]

    assert extract.folder_name == "PAYROLL"
    assert extract.application == "HR"
    assert extract.sub_application == "PAY"
    assert extract.task_type == "Command"
    assert extract.cmdline == "extract.sh"
    assert extract.created_by == "alice"
    assert not extract.critical
    assert extract.scheduling.time_from == "0100"
    assert extract.scheduling.months == ["JAN", "FEB"]
    assert extract.metadata == {"MEMNAME": "extract.sh"}
    assert extract.variables == {"%%RUN_DATE": "%%ODATE"}

    assert jobs["PAY_REPORT"].folder_name == "PAYROLL_REPORTS"
    assert jobs["BILL_RUN"].scheduling.days_calendar == "WORKDAYS"


def test_parse_job_children(sample_folders):
    load = _jobs_by_name(sample_folders)["PAY_LOAD"]

    assert load.critical
    assert load.scheduling.max_rerun == 3
    assert [c.name for c in load.in_conditions] == ["PAY_EXTRACT-ENDED-OK"]
    assert load.in_conditions[0].and_or == "A"
    assert load.out_conditions[0].sign == "+"
    assert load.control_resources[0].resource_type == "E"
    assert load.quantitative_resources[0].quantity == 2
    assert load.auto_edits == {"%%TARGET": "PROD"}

    on = load.on_conditions[0]
    assert on.code == "NOTOK"
    assert on.actions == [Mail("ops@example.com", "Load failed"), ConditionAction("PAY_LOAD-FAILED", "+")]


def test_cyclic_interval_only_for_cyclic_jobs():
    xml = """<DEFTABLE><FOLDER FOLDER_NAME="F">
        <JOB JOBNAME="CYC" CYCLIC="Y" INTERVAL="00010M"/>
        <JOB JOBNAME="ONCE" INTERVAL="00001M"/>
        <JOB JOBNAME="SEQ" CYCLIC="Y" CYCLIC_TIMES_SEQUENCE="0800,1200"/>
    </FOLDER></DEFTABLE>"""
    jobs = _jobs_by_name(ControlMParser().parse_string(xml))

    assert jobs["CYC"].cyclic
    assert jobs["CYC"].scheduling.cyclic_interval == "00010M"
    assert jobs["ONCE"].scheduling.cyclic_interval is None
    assert jobs["ONCE"].scheduling.interval == "00001M"
    assert jobs["SEQ"].scheduling.cyclic_times == "0800,1200"


def test_do_action_variants():
    xml = """<DEFTABLE><FOLDER FOLDER_NAME="F"><JOB JOBNAME="J">
        <ON STMT="*" CODE="COMPSTAT=1" PATTERN="ERROR*">
            <DOACTION ACTION="OK"/>
            <DOFORCEJOB NAME="RECOVER" TABLE_NAME="F"/>
            <DOSHOUT DEST="EM" MESSAGE="late"/>
            <DOAUTOEDIT EXP="%%RETRY=1"/>
            <DOSOMETHINGELSE/>
        </ON>
    </JOB></FOLDER></DEFTABLE>"""
    job = _jobs_by_name(ControlMParser().parse_string(xml))["J"]
    on = job.on_conditions[0]

    assert on.pattern == "ERROR*"
    assert len(on.actions) == 4
    assert on.actions[3] == SetVariable("%%RETRY", "1")
    assert on.complexity() == 1 + 4 + 2


def test_missing_names_are_recovered():
    xml = """<DEFTABLE><FOLDER FOLDER_NAME="F">
        <JOB APPLICATION="X">
            <INCOND ODATE="ODAT"/>
            <INCOND NAME="GOOD"/>
            <UNKNOWN_CHILD NAME="IGNORED"/>
        </JOB>
    </FOLDER></DEFTABLE>"""
    parser = ControlMParser()
    job = _jobs_by_name(parser.parse_string(xml))["UNKNOWN"]

    assert [c.name for c in job.in_conditions] == ["GOOD"]
    assert parser.parse_stats["skipped_records"] == 1
    assert parser.parse_stats["jobs"] == 1


def test_sub_folder_ignored_in_simple_folder():
    xml = """<DEFTABLE><FOLDER FOLDER_NAME="F">
        <SUB_FOLDER FOLDER_NAME="S"><JOB JOBNAME="J"/></SUB_FOLDER>
    </FOLDER></DEFTABLE>"""
    folders = ControlMParser().parse_string(xml)
    assert folders[0].sub_folders == []
    assert folders[0].total_jobs() == 0


def test_empty_catalog():
    assert ControlMParser().parse_string("<DEFTABLE/>") == []


def test_control_characters_stripped():
    xml = '<DEFTABLE><FOLDER FOLDER_NAME="F"><JOB JOBNAME="J" DESCRIPTION="bad\x01\x1fchars"/></FOLDER></DEFTABLE>'
    job = ControlMParser().parse_string(xml)[0].jobs[0]
    assert job.description == "badchars"


def test_malformed_xml():
    with pytest.raises(CatalogParseError) as exc_info:
        ControlMParser().parse_string("<DEFTABLE><FOLDER>", source="broken.xml")
    assert exc_info.value.path == "broken.xml"
    assert exc_info.value.position is not None
    assert "broken.xml" in str(exc_info.value)


def test_parse_bytes_uses_windows_1252():
    data = '<DEFTABLE><FOLDER FOLDER_NAME="F"><JOB JOBNAME="J" DESCRIPTION="Relevé"/></FOLDER></DEFTABLE>'.encode("cp1252")
    job = ControlMParser().parse_bytes(data)[0].jobs[0]
    assert job.description == "Relevé"


def test_parse_file(sample_file):
    folders = ControlMParser().parse_file(sample_file)
    assert sum(f.total_jobs() for f in folders) == 4


def test_parse_gzip_file(tmp_path):
    path = tmp_path / "export.xml.gz"
    with gzip.open(path, "wb") as f:
        f.write(SAMPLE_XML.encode("cp1252"))

    folders = ControlMParser().parse_file(path)
    assert sum(f.total_jobs() for f in folders) == 4


def test_missing_file(tmp_path):
    with pytest.raises(CatalogIOError) as exc_info:
        ControlMParser().parse_file(tmp_path / "missing.xml")
    assert "missing.xml" in str(exc_info.value)


def test_sanitize_is_idempotent():
    dirty = SAMPLE_XML.replace("\n", "\n\x00").replace('JOBNAME="PAY_LOAD"', 'JOBNAME="PAY_\x00LOAD"')
    once = ControlMParser.sanitize_xml(dirty)

    assert once == SAMPLE_XML
    assert ControlMParser.sanitize_xml(once) == once
    assert ControlMParser.sanitize_xml(SAMPLE_XML) == SAMPLE_XML


def test_sanitized_text_parses_to_same_tree():
    parser = ControlMParser()
    expected = parser.parse_string(SAMPLE_XML)

    assert parser.parse_string(ControlMParser.sanitize_xml(SAMPLE_XML)) == expected
    assert parser.parse_string(SAMPLE_XML.replace("\n", "\n\x00")) == expected


def test_reserialized_xml_parses_to_same_tree():
    parser = ControlMParser()
    expected = parser.parse_string(SAMPLE_XML)

    root = ET.fromstring(ControlMParser.sanitize_xml(SAMPLE_XML))
    rewritten = ET.tostring(root, encoding="unicode")

    assert parser.parse_string(rewritten) == expected
