"""Test environment: keep the workspace and logs out of the source tree."""

import os
import tempfile

import pytest

# Must run before ``dorislift`` is imported: the config is loaded at import time.
_TEST_ROOT = tempfile.mkdtemp(prefix="dorislift-tests-")
os.environ.setdefault("DORISLIFT_WORKSPACE_DIR", os.path.join(_TEST_ROOT, "workspace"))
os.environ.setdefault("DORISLIFT_LOGS_DIR", os.path.join(_TEST_ROOT, "logs"))


@pytest.fixture
def review_logger(tmp_path):
    from dorislift.services.sql_conversion.utils.manual_review_logger import ManualReviewLogger

    return ManualReviewLogger(output_dir=str(tmp_path))
