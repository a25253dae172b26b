"""
Starter workflow generation for self-hosted runners.
"""

from __future__ import annotations

import datetime as dt
import logging
import textwrap
from pathlib import Path
from typing import Final

from .exceptions import MigrationError
from .utils import atomic_write_bytes

logger: logging.Logger = logging.getLogger(__name__)

WORKFLOW_TYPES: Final = ("ci", "cd", "test", "build", "custom")
LANGUAGES: Final = ("nodejs", "python", "java", "go", "docker", "generic")

_CHECKOUT_STEP: Final = """\
      - name: Checkout code
        uses: actions/checkout@v4
"""

_CI_STEPS: Final[dict[str, str]] = {
    "nodejs": """\
      - name: Setup Node.js
        uses: actions/setup-node@v4
        with:
          node-version: ${{ env.NODE_VERSION }}
          cache: 'npm'

      - name: Install dependencies
        run: npm ci

      - name: Run linting
        run: npm run lint

      - name: Run tests
        run: npm test

      - name: Build application
        run: npm run build
""",
    "python": """\
      - name: Setup Python
        uses: actions/setup-python@v5
        with:
          python-version: ${{ env.PYTHON_VERSION }}

      - name: Install dependencies
        run: |
          python -m pip install --upgrade pip
          pip install -r requirements.txt

      - name: Run linting
        run: |
          pip install flake8
          flake8 . --count --select=E9,F63,F7,F82 --show-source --statistics

      - name: Run tests
        run: |
          pip install pytest
          pytest
""",
    "java": """\
      - name: Setup Java
        uses: actions/setup-java@v4
        with:
          distribution: temurin
          java-version: '21'

      - name: Build and test
        run: ./mvnw -B verify
""",
    "go": """\
      - name: Setup Go
        uses: actions/setup-go@v5
        with:
          go-version: ${{ env.GO_VERSION }}

      - name: Vet
        run: go vet ./...

      - name: Run tests
        run: go test ./...
""",
    "docker": """\
      - name: Build Docker image
        run: docker build -t test-image .

      - name: Run tests in container
        run: docker run --rm test-image npm test

      - name: Security scan
        run: |
          docker run --rm -v /var/run/docker.sock:/var/run/docker.sock \\
            -v $PWD:/root/.cache/ aquasec/trivy:latest image test-image
""",
    "generic": """\
      - name: Run custom build
        run: |
          echo "Add your build commands here"
          # Example: make build

      - name: Run tests
        run: |
          echo "Add your test commands here"
          # Example: make test
""",
}

_CD_STEPS: Final = """\
      - name: Build for production
        run: |
          echo "Add your production build commands here"

      - name: Deploy to production
        run: |
          echo "Add your deployment commands here"
"""

_TEST_STEPS: Final = """\
      - name: Run ${{ matrix.test-type }} tests
        run: |
          echo "Running ${{ matrix.test-type }} tests"
          # Add your specific test commands here
"""

_BUILD_STEPS: Final = """\
      - name: Build application
        run: |
          echo "Building application"
          # Add your build commands here

      - name: Upload build artifacts
        uses: actions/upload-artifact@v4
        with:
          name: build-artifacts
          path: |
            dist/
            build/
"""

_CUSTOM_STEPS: Final = """\
      - name: Custom step 1
        run: |
          echo "Add your custom commands here"

      - name: Custom step 2
        run: |
          echo "Add more custom commands here"
"""


def _header(workflow_type: str, language: str, generated_at: dt.datetime) -> str:
    return textwrap.dedent(f"""\
        # GitHub Actions Workflow - Generated by gha-workflow-migrator
        #
        # This workflow runs on self-hosted runners.
        #
        # Generated: {generated_at:%Y-%m-%d %H:%M:%S}
        # Type: {workflow_type}
        # Language: {language}

        name: {workflow_type.upper()} - {language.capitalize()}

        on:
          push:
            branches: [ main, develop ]
          pull_request:
            branches: [ main ]

        env:
          NODE_VERSION: '18'
          PYTHON_VERSION: '3.11'
          GO_VERSION: '1.21'

        jobs:
        """)


def _job(job_id: str, name: str, runner: str, steps: str, extra: str = "") -> str:
    return f"  {job_id}:\n    name: {name}\n    runs-on: {runner}\n{extra}\n    steps:\n{_CHECKOUT_STEP}\n{steps}"


def render_workflow(workflow_type: str, language: str, runner: str, generated_at: dt.datetime) -> str:
    """Render a starter workflow whose jobs run on `runner`.

    Raises:
        ValueError: For an unknown workflow type or language
    """
    if workflow_type not in WORKFLOW_TYPES:
        msg = f"Unknown workflow type: {workflow_type}"
        raise ValueError(msg)
    if language not in LANGUAGES:
        msg = f"Unknown language: {language}"
        raise ValueError(msg)

    match workflow_type:
        case "ci":
            job = _job("continuous-integration", "Continuous Integration", runner, _CI_STEPS[language])
        case "cd":
            extra = "    needs: continuous-integration\n    if: github.ref == 'refs/heads/main'\n"
            job = _job("continuous-deployment", "Continuous Deployment", runner, _CD_STEPS, extra)
        case "test":
            extra = "\n    strategy:\n      matrix:\n        test-type: [unit, integration, e2e]\n"
            job = _job("test", "Run Tests", runner, _TEST_STEPS, extra)
        case "build":
            job = _job("build", "Build Application", runner, _BUILD_STEPS)
        case _:
            job = _job("custom-job", "Custom Job", runner, _CUSTOM_STEPS)

    return _header(workflow_type, language, generated_at) + job


def write_workflow(path: Path, content: str, *, force: bool = False) -> None:
    """Write a generated workflow, refusing to overwrite unless forced."""
    if path.exists() and not force:
        msg = f"{path} already exists (use --force to overwrite)"
        raise MigrationError(msg)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_bytes(path, content.encode("utf-8"))
    except OSError as e:
        msg = f"Failed to write {path}: {e}"
        raise MigrationError(msg) from e
    logger.info(f"Created workflow: {path}")
