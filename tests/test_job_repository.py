"""
Tests for catalog queries.
"""

import csv
import io

import pytest

from controlm_analysis.domain import Condition, Folder, Job
from controlm_analysis.errors import CatalogIOError
from controlm_analysis.storage import (
    CatalogStore,
    JobRepository,
    JobSearchRequest,
    strip_condition_suffix,
)
from controlm_analysis.storage.job_repository import CSV_COLUMNS


def _names(page):
    return [job['job_name'] for job in page['jobs']]


def test_search_defaults(repository):
    page = repository.search_jobs()

    assert page['total'] == 4
    assert page['page'] == 1
    assert page['per_page'] == 50
    assert page['total_pages'] == 1
    assert _names(page) == ["BILL_RUN", "PAY_EXTRACT", "PAY_LOAD", "PAY_REPORT"]


def test_search_pagination(repository):
    page = repository.search_jobs(JobSearchRequest(per_page=3, page=2))
    assert page['total'] == 4
    assert page['total_pages'] == 2
    assert _names(page) == ["PAY_REPORT"]


@pytest.mark.parametrize("filters, expected", [
    ({'job_name': "PAY"}, ["PAY_EXTRACT", "PAY_LOAD", "PAY_REPORT"]),
    ({'folder_name': "REPORTS"}, ["PAY_REPORT"]),
    ({'application': "FIN"}, ["BILL_RUN"]),
    ({'appl_type': "FILE_TRANS"}, ["PAY_REPORT"]),
    ({'task_type': "Job"}, ["PAY_LOAD", "PAY_REPORT"]),
    ({'critical': True}, ["PAY_LOAD"]),
    ({'critical': False}, ["BILL_RUN", "PAY_EXTRACT", "PAY_REPORT"]),
    ({'datacenter': "DC2"}, ["BILL_RUN"]),
    ({'min_dependencies': 1}, ["PAY_LOAD", "PAY_REPORT"]),
    ({'max_dependencies': 0}, ["BILL_RUN", "PAY_EXTRACT"]),
    ({'min_on_conditions': 1}, ["PAY_LOAD"]),
    ({'has_variables': True}, ["PAY_EXTRACT"]),
    ({'min_variables': 1}, ["PAY_EXTRACT"]),
])
def test_search_filters(repository, filters, expected):
    assert _names(repository.search_jobs(JobSearchRequest(**filters))) == expected


def test_search_sorting(repository):
    page = repository.search_jobs(JobSearchRequest(sort_by="job_name", sort_order="desc"))
    assert _names(page) == ["PAY_REPORT", "PAY_LOAD", "PAY_EXTRACT", "BILL_RUN"]

    # Unknown columns fall back to job_name
    page = repository.search_jobs(JobSearchRequest(sort_by="1; DROP TABLE jobs"))
    assert _names(page) == ["BILL_RUN", "PAY_EXTRACT", "PAY_LOAD", "PAY_REPORT"]


def test_search_row_counts(repository):
    page = repository.search_jobs(JobSearchRequest(job_name="PAY_LOAD"))
    job = page['jobs'][0]

    assert job['critical'] is True
    assert job['in_conditions_count'] == 1
    assert job['out_conditions_count'] == 1
    assert job['control_resources_count'] == 1
    assert job['variables_count'] == 0


def test_request_from_dict():
    request = JobSearchRequest.from_dict({'job_name': "X", 'page': None, 'unknown': 1})
    assert request.job_name == "X"
    assert request.page == 1


def test_job_detail(repository, job_ids):
    detail = repository.get_job_detail(job_ids["PAY_LOAD"])

    assert detail['job']['job_name'] == "PAY_LOAD"
    assert detail['scheduling']['max_rerun'] == 3
    assert detail['in_conditions'] == [
        {'condition_name': "PAY_EXTRACT-ENDED-OK", 'odate': "ODAT", 'and_or': "A"}
    ]
    assert detail['on_conditions'][0]['actions'] == [
        {'action_type': "Mail", 'action_value': "ops@example.com", 'additional_data': "Load failed"},
        {'action_type': "Condition", 'action_value': "PAY_LOAD-FAILED", 'additional_data': "+"},
    ]
    assert detail['quantitative_resources'][0]['quantity'] == 2
    assert detail['auto_edits'] == [{'name': "%%TARGET", 'value': "PROD"}]
    assert detail['variables'] == []


def test_job_detail_missing(repository):
    assert repository.get_job_detail(99999) is None


def test_dashboard_stats(repository):
    stats = repository.dashboard_stats()

    assert stats['total_jobs'] == 4
    assert stats['total_folders'] == 3
    assert stats['critical_jobs'] == 1
    assert stats['cyclic_jobs'] == 1
    assert stats['file_transfer_jobs'] == 1
    assert stats['cli_jobs'] == 2
    assert stats['jobs_by_application'] == [{'name': "HR", 'count': 3}, {'name': "FIN", 'count': 1}]
    assert stats['jobs_by_task_type'][0] == {'name': "Job", 'count': 2}


def test_filter_options(repository):
    options = repository.filter_options()

    assert options['applications'] == ["FIN", "HR"]
    assert options['folders'] == ["BILLING", "PAYROLL", "PAYROLL_REPORTS"]
    assert options['task_types'] == ["Command", "Job", "Script"]
    assert options['appl_types'] == ["FILE_TRANS", "OS"]
    assert options['owners'] == ["payadm"]


def test_export_csv(repository):
    text = repository.export_search_to_csv(JobSearchRequest(application="HR"))
    rows = list(csv.reader(io.StringIO(text)))

    assert rows[0] == CSV_COLUMNS
    assert [row[0] for row in rows[1:]] == ["PAY_EXTRACT", "PAY_LOAD", "PAY_REPORT"]


@pytest.mark.parametrize("name, base", [
    ("PAY_LOAD-ENDED-OK", "PAY_LOAD"),
    ("PAY_LOAD-ENDED-NOTOK", "PAY_LOAD"),
    ("PAY_LOAD-ENDED", "PAY_LOAD"),
    ("PAY_LOAD-OK", "PAY_LOAD"),
    ("PAY_LOAD-NOTOK", "PAY_LOAD"),
    ("PAY_LOAD", "PAY_LOAD"),
])
def test_strip_condition_suffix(name, base):
    assert strip_condition_suffix(name) == base


def test_job_graph(repository, job_ids):
    graph = repository.get_job_graph(job_ids["PAY_LOAD"])

    colors = {node['label']: node['color'] for node in graph['nodes']}
    assert colors == {"PAY_LOAD": "green", "PAY_EXTRACT": "blue", "PAY_REPORT": "orange"}

    edges = {(e['from'], e['to'], e['type']) for e in graph['edges']}
    assert edges == {
        (job_ids["PAY_EXTRACT"], job_ids["PAY_LOAD"], "in"),
        (job_ids["PAY_LOAD"], job_ids["PAY_REPORT"], "out"),
    }


def test_job_graph_end_to_end(repository, job_ids):
    direct = repository.get_job_graph(job_ids["PAY_REPORT"])
    assert {n['label'] for n in direct['nodes']} == {"PAY_REPORT", "PAY_LOAD"}

    full = repository.get_job_graph(job_ids["PAY_REPORT"], end_to_end=True)
    assert {n['label'] for n in full['nodes']} == {"PAY_REPORT", "PAY_LOAD", "PAY_EXTRACT"}
    assert len(full['edges']) == 2


def test_job_graph_missing(repository):
    assert repository.get_job_graph(99999) is None


def test_suffix_stripping_links_producer():
    producer = Job("PAY_LOAD", "F")
    consumer = Job("J", "F")
    consumer.in_conditions = [Condition.incoming("PAY_LOAD-ENDED-OK")]

    with CatalogStore(":memory:") as store:
        store.export_folders([Folder("F", jobs=[producer, consumer])])
        repo = JobRepository(connection=store.conn)
        ids = {r['job_name']: r['id'] for r in repo.search_jobs()['jobs']}
        graph = repo.get_job_graph(ids["J"])

    assert {"from": ids["PAY_LOAD"], "to": ids["J"], "type": "in"} in graph['edges']
    assert len(graph['nodes']) == 2


def test_self_reference_skipped():
    job = Job("LOOP", "F")
    job.in_conditions = [Condition.incoming("LOOP-ENDED-OK"), Condition.incoming("LOOP")]

    with CatalogStore(":memory:") as store:
        store.export_folders([Folder("F", jobs=[job])])
        graph = JobRepository(connection=store.conn).get_job_graph(1)

    assert len(graph['nodes']) == 1
    assert graph['edges'] == []


def test_missing_database(tmp_path):
    with pytest.raises(CatalogIOError):
        JobRepository(tmp_path / "nope.db")


def test_in_memory_repository_is_empty():
    repo = JobRepository()
    assert repo.search_jobs()['total'] == 0
    assert repo.dashboard_stats()['total_jobs'] == 0
