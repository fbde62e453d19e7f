"""
Catalog database schema and connection setup.
"""

import sqlite3
from pathlib import Path
from typing import Union

MEMORY = ':memory:'

PRAGMAS = [
    "PRAGMA synchronous = NORMAL",
    "PRAGMA cache_size = 10000",
    "PRAGMA temp_store = MEMORY",
    "PRAGMA foreign_keys = ON",
]

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS folders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    folder_name TEXT NOT NULL,
    folder_type TEXT NOT NULL,
    datacenter TEXT,
    application TEXT,
    description TEXT,
    owner TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(folder_name, datacenter)
);

CREATE TABLE IF NOT EXISTS jobs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_name TEXT NOT NULL,
    folder_name TEXT NOT NULL,
    application TEXT,
    sub_application TEXT,
    appl_type TEXT,
    appl_ver TEXT,
    description TEXT,
    owner TEXT,
    run_as TEXT,
    priority TEXT,
    critical INTEGER DEFAULT 0,
    task_type TEXT,
    cyclic INTEGER DEFAULT 0,
    node_id TEXT,
    cmdline TEXT,
    created_by TEXT,
    creation_date TEXT,
    change_userid TEXT,
    change_date TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(job_name, folder_name)
);

CREATE TABLE IF NOT EXISTS job_scheduling (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    time_from TEXT,
    time_to TEXT,
    days_calendar TEXT,
    weeks_calendar TEXT,
    conf_calendar TEXT,
    interval TEXT,
    max_wait INTEGER,
    max_rerun INTEGER,
    days TEXT,
    weekdays TEXT,
    months TEXT,
    cyclic_interval TEXT,
    cyclic_times TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS in_conditions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    condition_name TEXT NOT NULL,
    odate TEXT,
    and_or TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS out_conditions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    condition_name TEXT NOT NULL,
    odate TEXT,
    sign TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS on_conditions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    stmt TEXT,
    code TEXT,
    pattern TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS do_actions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    on_condition_id INTEGER NOT NULL,
    action_type TEXT NOT NULL,
    action_value TEXT,
    additional_data TEXT,
    FOREIGN KEY (on_condition_id) REFERENCES on_conditions(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS control_resources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    resource_name TEXT NOT NULL,
    resource_type TEXT,
    on_fail TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS quantitative_resources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    resource_name TEXT NOT NULL,
    quantity INTEGER NOT NULL,
    on_fail TEXT,
    on_ok TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS job_variables (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    variable_name TEXT NOT NULL,
    variable_value TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS job_auto_edits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    edit_name TEXT NOT NULL,
    edit_value TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS job_metadata (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    meta_key TEXT NOT NULL,
    meta_value TEXT,
    FOREIGN KEY (job_id) REFERENCES jobs(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_jobs_folder ON jobs(folder_name);
CREATE INDEX IF NOT EXISTS idx_jobs_application ON jobs(application);
CREATE INDEX IF NOT EXISTS idx_jobs_critical ON jobs(critical);
CREATE INDEX IF NOT EXISTS idx_jobs_appl_type ON jobs(appl_type);
CREATE INDEX IF NOT EXISTS idx_jobs_appl_ver ON jobs(appl_ver);
CREATE INDEX IF NOT EXISTS idx_jobs_task_type ON jobs(task_type);
CREATE INDEX IF NOT EXISTS idx_jobs_owner ON jobs(owner);
CREATE INDEX IF NOT EXISTS idx_jobs_name ON jobs(job_name);

CREATE INDEX IF NOT EXISTS idx_in_conditions_job ON in_conditions(job_id);
CREATE INDEX IF NOT EXISTS idx_in_conditions_name ON in_conditions(condition_name);
CREATE INDEX IF NOT EXISTS idx_out_conditions_job ON out_conditions(job_id);
CREATE INDEX IF NOT EXISTS idx_on_conditions_job ON on_conditions(job_id);
CREATE INDEX IF NOT EXISTS idx_do_actions_on_condition ON do_actions(on_condition_id);
CREATE INDEX IF NOT EXISTS idx_control_resources_job ON control_resources(job_id);
CREATE INDEX IF NOT EXISTS idx_quantitative_resources_job ON quantitative_resources(job_id);
CREATE INDEX IF NOT EXISTS idx_job_scheduling_job ON job_scheduling(job_id);
CREATE INDEX IF NOT EXISTS idx_job_variables_job ON job_variables(job_id);
CREATE INDEX IF NOT EXISTS idx_job_auto_edits_job ON job_auto_edits(job_id);
CREATE INDEX IF NOT EXISTS idx_job_metadata_job ON job_metadata(job_id);
"""


def connect(db_path: Union[str, Path], writer: bool = True) -> sqlite3.Connection:
    """
    Open a catalog connection with rows accessible by column name.

    Writers switch the database to WAL journaling; readers leave the journal
    mode alone. The connection may be shared across threads as long as the
    caller serializes access.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if writer and str(db_path) != MEMORY:
        conn.execute("PRAGMA journal_mode = WAL")
    for pragma in PRAGMAS:
        conn.execute(pragma)
    return conn
