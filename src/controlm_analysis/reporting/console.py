"""
Console summary of an analysis run.
"""

from typing import List

from ..analysis.complexity_calculator import JobComplexityResult
from ..analysis.pipeline import AnalysisResult
from ..domain.value_objects import MigrationDifficulty

DIFFICULTY_LABELS = {
    MigrationDifficulty.EASY: "🟢 Easy (0-30)",
    MigrationDifficulty.MEDIUM: "🟡 Medium (31-60)",
    MigrationDifficulty.HARD: "🔴 Hard (61+)",
}


def quick_wins(result: AnalysisResult) -> List[JobComplexityResult]:
    """Easy jobs without dependencies."""
    return [
        r for r in result.per_job_results
        if r.migration_difficulty is MigrationDifficulty.EASY and r.dependency_count == 0
    ]


def critical_jobs(result: AnalysisResult) -> List[JobComplexityResult]:
    return [r for r in result.per_job_results if r.is_critical]


def print_summary(result: AnalysisResult):
    """Print the migration analysis summary to stdout."""
    jobs = result.per_job_results
    total = len(jobs)

    print("\n" + "=" * 80)
    print("📊 CONTROL-M MIGRATION ANALYSIS SUMMARY")
    print("=" * 80)

    print("\n📈 Overall Statistics:")
    print(f"   Total Jobs: {result.total_jobs}")
    print(f"   Total Folders: {result.total_folders}")
    print(f"   Average Complexity: {result.average_complexity:.2f}")
    print(f"   Migration Waves: {len(result.waves)}")
    if result.has_cycle:
        print("   ⚠️  Circular Dependencies: DETECTED")

    print("\n🎯 Migration Difficulty Distribution:")
    for difficulty, label in DIFFICULTY_LABELS.items():
        count = sum(1 for r in jobs if r.migration_difficulty is difficulty)
        pct = (count / total * 100) if total else 0
        print(f"   {label}: {count} jobs ({pct:.1f}%)")

    print("\n🌊 Migration Waves Breakdown:")
    for wave in result.waves:
        wave_jobs = result.jobs_in_wave(wave.wave)
        average = sum(r.complexity_score.value for r in wave_jobs) / len(wave_jobs) if wave_jobs else 0
        print(f"   Wave {wave.wave}: {len(wave.jobs)} jobs (avg complexity: {average:.1f})")
        print(f"      {wave.reason}")

    print("\n🔥 Top 10 Most Complex Jobs:")
    ranked = sorted(jobs, key=lambda r: r.complexity_score.value, reverse=True)
    for i, r in enumerate(ranked[:10], 1):
        print(f"   {i}. {r.job_name} (Complexity: {r.complexity_score.value}, Wave: {r.migration_wave})")
        print(f"      Folder: {r.folder_name} | Difficulty: {r.migration_difficulty.value}")

    critical = critical_jobs(result)
    if critical:
        print(f"\n⚡ Critical Jobs ({len(critical)}):")
        for r in critical[:5]:
            print(f"   - {r.job_name} (Complexity: {r.complexity_score.value}, Wave: {r.migration_wave})")
        if len(critical) > 5:
            print(f"   ... and {len(critical) - 5} more critical jobs")

    wins = quick_wins(result)
    if wins:
        print(f"\n✅ Quick Wins ({len(wins)}):")
        for r in wins[:5]:
            print(f"   - {r.job_name} ({r.folder_name})")
        if len(wins) > 5:
            print(f"   ... and {len(wins) - 5} more quick wins")

    print("\n💡 Recommendations:")
    first_wave = result.jobs_in_wave(1)
    print(f"   1. Start with Wave 1 ({len(first_wave)} jobs)")
    print(f"   2. Review {len(critical)} critical jobs")
    step = 3
    if result.has_cycle:
        print(f"   {step}. Resolve circular dependencies")
        step += 1
    print(f"   {step}. {len(wins)} quick wins can be migrated immediately")

    print("\n" + "=" * 80)
