import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def local_dev():
    os.chdir(PROJECT_ROOT)
    os.environ.setdefault("DAGSTER_HOME", str(PROJECT_ROOT))
    os.execvp(
        sys.executable,
        [sys.executable, "-m", "dagster", "dev", "-m", "job_recommendations.definitions"]
        + sys.argv[1:],
    )


def migrate():
    """Apply database migrations up to head."""
    os.chdir(PROJECT_ROOT)
    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"] + sys.argv[1:], check=True
    )
