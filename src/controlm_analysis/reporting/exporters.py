"""
Report Exporters

Writes an AnalysisResult as JSON, CSV (one overall file plus one per wave)
and Markdown.
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..analysis.complexity_calculator import JobComplexityResult
from ..analysis.pipeline import AnalysisResult, job_risks

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / 'templates'

CSV_HEADER = [
    'Job Name', 'Folder', 'Complexity Score', 'Migration Difficulty', 'Priority',
    'Dependencies', 'Critical', 'Cyclic', 'Effort Hours', 'Wave',
]

RECOMMENDATIONS = [
    "Start with Wave 1 jobs for quick wins and team familiarization",
    "Address circular dependencies before migration",
    "Plan extra time for critical and high-complexity jobs",
    "Consider breaking down jobs with complexity > 80 into smaller DAGs",
    "Establish thorough testing procedures for cyclic jobs",
]

HIGH_RISK_THRESHOLD = 60


def _analysis_date() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def export_json(result: AnalysisResult, output_path: Union[str, Path],
                analysis_date: Optional[str] = None) -> Path:
    """Write the full report document as indented JSON."""
    output_path = Path(output_path)
    document = result.to_dict(analysis_date or _analysis_date())
    output_path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding='utf-8')
    logger.info(f"JSON report written to {output_path}")
    return output_path


def _csv_row(job: JobComplexityResult) -> List[Any]:
    return [
        job.job_name,
        job.folder_name,
        job.complexity_score.value,
        job.migration_difficulty.value,
        job.migration_priority.value,
        job.dependency_count,
        job.is_critical,
        job.is_cyclic,
        job.migration_difficulty.estimated_effort_hours,
        job.migration_wave,
    ]


def _write_csv(path: Path, jobs: List[JobComplexityResult]):
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        writer.writerows(_csv_row(job) for job in jobs)


def export_csv(result: AnalysisResult, output_path: Union[str, Path]) -> List[Path]:
    """
    Write all jobs to output_path and each wave to wave_<n>.csv beside it.

    Returns:
        Paths written, overall file first
    """
    output_path = Path(output_path)
    _write_csv(output_path, result.per_job_results)
    written = [output_path]

    for wave in result.waves:
        wave_path = output_path.parent / f"wave_{wave.wave}.csv"
        _write_csv(wave_path, result.jobs_in_wave(wave.wave))
        written.append(wave_path)

    logger.info(f"CSV report written to {output_path} ({len(result.waves)} wave files)")
    return written


def high_risk_jobs(result: AnalysisResult) -> List[JobComplexityResult]:
    return [
        job for job in result.per_job_results
        if job.complexity_score.value > HIGH_RISK_THRESHOLD or job.is_critical
    ]


def _template_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(['html', 'xml']),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_markdown(result: AnalysisResult, analysis_date: Optional[str] = None) -> str:
    template = _template_env().get_template('analysis.md.j2')
    return template.render(
        analysis_date=analysis_date or _analysis_date(),
        result=result,
        jobs=result.per_job_results,
        high_risk=[(job, job_risks(job)) for job in high_risk_jobs(result)],
        recommendations=RECOMMENDATIONS,
    )


def export_markdown(result: AnalysisResult, output_path: Union[str, Path],
                    analysis_date: Optional[str] = None) -> Path:
    output_path = Path(output_path)
    output_path.write_text(render_markdown(result, analysis_date), encoding='utf-8')
    logger.info(f"Markdown report written to {output_path}")
    return output_path
