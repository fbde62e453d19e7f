"""
Catalog Store Module

Persists parsed folders and jobs into the SQLite catalog database.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from ..config import get_config
from ..domain.actions import flatten_action
from ..domain.entities import Folder, Job
from ..errors import CatalogStoreError
from .schema import SCHEMA_SQL, connect

logger = logging.getLogger(__name__)

# get_statistics() key -> table
STATISTICS_TABLES = {
    'folders': 'folders',
    'jobs': 'jobs',
    'in_conditions': 'in_conditions',
    'out_conditions': 'out_conditions',
    'on_conditions': 'on_conditions',
    'do_actions': 'do_actions',
    'control_resources': 'control_resources',
    'quantitative_resources': 'quantitative_resources',
    'variables': 'job_variables',
    'auto_edits': 'job_auto_edits',
    'metadata': 'job_metadata',
}


class CatalogStore:
    """
    Writer for the catalog database.

    Ingest is an upsert: a folder is matched on (folder_name, datacenter) and a
    job on (job_name, folder_name). A job that is already stored is deleted
    together with its child rows before being inserted again, so ingesting the
    same catalog twice leaves the database unchanged.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = str(db_path or get_config().get('database', 'path', default='controlm.db'))
        try:
            self.conn = connect(self.db_path)
            self._init_db()
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to open catalog {self.db_path}: {e}") from e

    def _init_db(self):
        """Initialize the database schema."""
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()

    def close(self):
        self.conn.close()

    def __enter__(self) -> 'CatalogStore':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def export_folders(self, folders: Sequence[Folder]) -> int:
        """
        Store folders, their jobs and sub-folders in a single transaction.

        Returns:
            Number of jobs written

        Raises:
            CatalogStoreError: if any statement fails; nothing is committed
        """
        job_count = 0
        try:
            with self.conn:
                for idx, folder in enumerate(folders, 1):
                    logger.info(f"Exporting folder {idx}/{len(folders)}: {folder.folder_name}")
                    job_count += self._export_folder(folder)
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to export catalog to {self.db_path}: {e}") from e

        logger.info(f"Exported {job_count} jobs to {self.db_path}")
        return job_count

    def _export_folder(self, folder: Folder) -> int:
        # UNIQUE(folder_name, datacenter) does not catch NULL datacenters, so match with IS
        row = self.conn.execute(
            "SELECT id FROM folders WHERE folder_name = ? AND datacenter IS ?",
            (folder.folder_name, folder.datacenter),
        ).fetchone()

        values = (folder.folder_type.value, folder.application, folder.description, folder.owner)
        if row:
            self.conn.execute(
                "UPDATE folders SET folder_type = ?, application = ?, description = ?, owner = ? WHERE id = ?",
                values + (row['id'],),
            )
        else:
            self.conn.execute(
                """
                INSERT INTO folders (folder_type, application, description, owner, folder_name, datacenter)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                values + (folder.folder_name, folder.datacenter),
            )

        count = 0
        for job in folder.jobs:
            self._export_job(job)
            count += 1
        for sub_folder in folder.sub_folders:
            count += self._export_folder(sub_folder)
        return count

    def _export_job(self, job: Job) -> int:
        # Cascades to every child table
        self.conn.execute(
            "DELETE FROM jobs WHERE job_name = ? AND folder_name = ?",
            (job.job_name, job.folder_name),
        )

        cursor = self.conn.execute(
            """
            INSERT INTO jobs (
                job_name, folder_name, application, sub_application, appl_type, appl_ver,
                description, owner, run_as, priority, critical, task_type, cyclic,
                node_id, cmdline, created_by, creation_date, change_userid, change_date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                job.job_name, job.folder_name, job.application, job.sub_application,
                job.appl_type, job.appl_ver, job.description, job.owner, job.run_as,
                job.priority, int(job.critical), job.task_type, int(job.cyclic),
                job.node_id, job.cmdline, job.created_by, job.creation_date,
                job.change_userid, job.change_date,
            ),
        )
        job_id = cursor.lastrowid

        scheduling = job.scheduling
        self.conn.execute(
            """
            INSERT INTO job_scheduling (
                job_id, time_from, time_to, days_calendar, weeks_calendar, conf_calendar,
                interval, max_wait, max_rerun, days, weekdays, months, cyclic_interval, cyclic_times
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                job_id, scheduling.time_from, scheduling.time_to, scheduling.days_calendar,
                scheduling.weeks_calendar, scheduling.conf_calendar, scheduling.interval,
                scheduling.max_wait, scheduling.max_rerun, scheduling.days, scheduling.weekdays,
                ','.join(scheduling.months) or None, scheduling.cyclic_interval,
                scheduling.cyclic_times,
            ),
        )

        self.conn.executemany(
            "INSERT INTO in_conditions (job_id, condition_name, odate, and_or) VALUES (?, ?, ?, ?)",
            [(job_id, c.name, c.odate, c.and_or) for c in job.in_conditions],
        )
        self.conn.executemany(
            "INSERT INTO out_conditions (job_id, condition_name, odate, sign) VALUES (?, ?, ?, ?)",
            [(job_id, c.name, c.odate, c.sign) for c in job.out_conditions],
        )

        for on_condition in job.on_conditions:
            on_cursor = self.conn.execute(
                "INSERT INTO on_conditions (job_id, stmt, code, pattern) VALUES (?, ?, ?, ?)",
                (job_id, on_condition.stmt, on_condition.code, on_condition.pattern),
            )
            self.conn.executemany(
                """
                INSERT INTO do_actions (on_condition_id, action_type, action_value, additional_data)
                VALUES (?, ?, ?, ?)
                """,
                [(on_cursor.lastrowid,) + flatten_action(a) for a in on_condition.actions],
            )

        self.conn.executemany(
            "INSERT INTO control_resources (job_id, resource_name, resource_type, on_fail) VALUES (?, ?, ?, ?)",
            [(job_id, r.name, r.resource_type, r.on_fail) for r in job.control_resources],
        )
        self.conn.executemany(
            """
            INSERT INTO quantitative_resources (job_id, resource_name, quantity, on_fail, on_ok)
            VALUES (?, ?, ?, ?, ?)
            """,
            [(job_id, r.name, r.quantity, r.on_fail, r.on_ok) for r in job.quantitative_resources],
        )
        self.conn.executemany(
            "INSERT INTO job_variables (job_id, variable_name, variable_value) VALUES (?, ?, ?)",
            [(job_id, name, value) for name, value in job.variables.items()],
        )
        self.conn.executemany(
            "INSERT INTO job_auto_edits (job_id, edit_name, edit_value) VALUES (?, ?, ?)",
            [(job_id, name, value) for name, value in job.auto_edits.items()],
        )
        self.conn.executemany(
            "INSERT INTO job_metadata (job_id, meta_key, meta_value) VALUES (?, ?, ?)",
            [(job_id, key, value) for key, value in job.metadata.items()],
        )

        logger.debug(f"Stored job {job.folder_name}/{job.job_name} as id {job_id}")
        return job_id

    def get_statistics(self) -> Dict[str, int]:
        """Row counts of the main catalog tables."""
        try:
            return {
                key: self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for key, table in STATISTICS_TABLES.items()
            }
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to read statistics from {self.db_path}: {e}") from e
