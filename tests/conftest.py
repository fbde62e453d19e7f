"""
Shared fixtures: a small Control-M export and catalogs built from it.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from controlm_analysis.parsers.controlm_parser import ControlMParser
from controlm_analysis.storage.catalog_store import CatalogStore
from controlm_analysis.storage.job_repository import JobRepository

SAMPLE_XML = """<?xml version="1.0" encoding="windows-1252"?>
<DEFTABLE>
  <SMART_FOLDER FOLDER_NAME="PAYROLL" DATACENTER="DC1" APPLICATION="HR" DESCRIPTION="Payroll batch" OWNER="ctmadm">
    <JOB JOBNAME="PAY_EXTRACT" APPLICATION="HR" SUB_APPLICATION="PAY" APPL_TYPE="OS" TASKTYPE="Command"
         CMDLINE="extract.sh" OWNER="payadm" CRITICAL="N" PRIORITY="AA" TIMEFROM="0100" TIMETO="0500"
         JAN="1" FEB="1" MAR="0" CREATED_BY="alice" MEMNAME="extract.sh">
      <OUTCOND NAME="PAY_EXTRACT-ENDED-OK" ODATE="ODAT" SIGN="+"/>
      <VARIABLE NAME="%%RUN_DATE" VALUE="%%ODATE"/>
    </JOB>
    <JOB JOBNAME="PAY_LOAD" APPLICATION="HR" APPL_TYPE="OS" TASKTYPE="Job" OWNER="payadm" CRITICAL="Y"
         MAXRERUN="3">
      <INCOND NAME="PAY_EXTRACT-ENDED-OK" ODATE="ODAT" AND_OR="A"/>
      <OUTCOND NAME="PAY_LOAD" ODATE="ODAT" SIGN="+"/>
      <CONTROL NAME="PAY_DB" TYPE="E" ONFAIL="R"/>
      <QUANTITATIVE NAME="CPU" QUANT="2" ONFAIL="R" ONOK="R"/>
      <ON STMT="*" CODE="NOTOK">
        <DOMAIL DEST="ops@example.com" MESSAGE="Load failed"/>
        <DOCOND NAME="PAY_LOAD-FAILED" ODATE="ODAT" SIGN="+"/>
      </ON>
      <AUTOEDIT2 NAME="%%TARGET" VALUE="PROD"/>
    </JOB>
    <SUB_FOLDER FOLDER_NAME="PAYROLL_REPORTS">
      <JOB JOBNAME="PAY_REPORT" APPLICATION="HR" APPL_TYPE="FILE_TRANS" TASKTYPE="Job" CYCLIC="Y" INTERVAL="00030M">
        <INCOND NAME="PAY_LOAD" ODATE="ODAT" AND_OR="A"/>
      </JOB>
    </SUB_FOLDER>
  </SMART_FOLDER>
  <FOLDER FOLDER_NAME="BILLING" DATACENTER="DC2">
    <JOB JOBNAME="BILL_RUN" APPLICATION="FIN" TASKTYPE="Script" DAYSCAL="WORKDAYS"/>
  </FOLDER>
</DEFTABLE>
"""

# Expected scores for SAMPLE_XML
EXPECTED_SCORES = {
    'PAY_EXTRACT': 9,
    'PAY_LOAD': 41,
    'PAY_REPORT': 35,
    'BILL_RUN': 6,
}


@pytest.fixture
def sample_folders():
    return ControlMParser().parse_string(SAMPLE_XML)


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "export.xml"
    path.write_text(SAMPLE_XML, encoding="cp1252")
    return path


@pytest.fixture
def catalog_db(tmp_path, sample_folders):
    """File catalog loaded with the sample export."""
    db_path = tmp_path / "catalog.db"
    with CatalogStore(db_path) as store:
        store.export_folders(sample_folders)
    return db_path


@pytest.fixture
def repository(catalog_db):
    repo = JobRepository(catalog_db)
    yield repo
    repo.close()


@pytest.fixture
def job_ids(repository):
    """Job name -> id in the sample catalog."""
    rows = repository.conn.execute("SELECT job_name, id FROM jobs").fetchall()
    return {row["job_name"]: row["id"] for row in rows}
