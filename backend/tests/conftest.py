"""Shared fixtures for Sprint Prioritizer tests."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def mock_jira_credentials():
    """Mock Jira credentials for testing."""
    return {
        "server": "https://test.atlassian.net",
        "email": "test@example.com",
        "token": "test-token-123"
    }


@pytest.fixture
def settings_environ(tmp_path):
    """Complete set of settings as environment variables."""
    return {
        "PRIORITIZER_CONFIG": str(tmp_path / "missing-config.json"),
        "LOG_FILE_NAME": "prioritization",
        "LOG_DIR": str(tmp_path),
        "JIRA_BASE_URL": "https://test.atlassian.net",
        "JIRA_EMAIL": "test@example.com",
        "JIRA_API_TOKEN": "test-token-123",
        "JIRA_SPRINT_ID": "42",
        "EMAIL_FROM": "bot@example.com",
        "EMAIL_TO": "team@example.com",
        "EMAIL_FROM_PASSWORD": "secret"
    }


def make_issue_json(key, estimate=1.0, impact=0, userbase=0, strategy=0,
                    total=None, epic=None, status="To Do", duedate=None):
    """Build an issue as returned by the Jira REST API."""
    return {
        "id": str(abs(hash(key)) % 100000),
        "key": key,
        "fields": {
            "duedate": duedate,
            "customfield_10004": estimate,
            "customfield_19148": impact,
            "customfield_19149": userbase,
            "customfield_19150": strategy,
            "customfield_19151": None,
            "customfield_19152": total,
            "customfield_10008": epic,
            "status": {"name": status}
        }
    }


@pytest.fixture
def issue_json():
    return make_issue_json


@pytest.fixture
def sample_issue_json():
    """Sample sprint issue linked to an epic."""
    return make_issue_json(
        "CTC-101", estimate=0.1, impact=3, userbase=3, strategy=3,
        total=12.5, epic="CTC-10", status="In Progress"
    )


@pytest.fixture
def sample_epic_json():
    """Sample epic that is being worked on."""
    return make_issue_json(
        "CTC-10", estimate=20, impact=3, userbase=3, strategy=3,
        status="In Progress"
    )


@pytest.fixture
def sample_search_page():
    """Build one search results page."""
    def build(issues, start_at=0, total=None):
        return {
            "startAt": start_at,
            "maxResults": 100,
            "total": total if total is not None else len(issues),
            "issues": issues
        }
    return build
