"""Sprint prioritization service.

Fetches the unresolved issues of a sprint, scores them and writes the score
back to each issue whose stored total is out of date.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional
import logging

from services.issue_fields import (
    FIELD_IDS, TOTAL_FIELD, Epic, Issue, OutcomeStatus, ProcessingOutcome,
    SearchResultPage
)
from services.jira_client import JiraClient, JiraRequestError
from services.prioritization import calculate_total

logger = logging.getLogger(__name__)


class SprintFetchError(Exception):
    """The sprint's issues could not be retrieved."""

    def __init__(self, sprint_id: int, cause: JiraRequestError):
        super().__init__(f"Retrieving of the issues of sprint {sprint_id} failed: {cause}")
        self.sprint_id = sprint_id
        self.cause = cause


@dataclass
class PrioritizationReport:
    """Aggregated outcome of one run."""

    sprint_id: int
    outcomes: list = field(default_factory=list)
    fetch_failed: bool = False

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def updated(self) -> int:
        return self._count(OutcomeStatus.UPDATED)

    @property
    def unchanged(self) -> int:
        return self._count(OutcomeStatus.UNCHANGED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def failures(self) -> list:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]


class SprintPrioritizerService:
    """Service for prioritizing the issues of one Jira sprint."""

    SEARCH_ENDPOINT = "/rest/api/2/search"
    ISSUE_ENDPOINT = "/rest/api/2/issue/{key}"
    PAGE_SIZE = 100

    def __init__(self, client: JiraClient, sprint_id: int, notifier=None,
                 epic_project_key: str = "CTC"):
        self.client = client
        self.sprint_id = sprint_id
        self.notifier = notifier
        self.epic_project_key = epic_project_key

    def _search_jql(self) -> str:
        return (f"sprint={self.sprint_id} AND status!=Closed "
                f"AND issuetype NOT IN (Epic,Sub-task)")

    def fetch_sprint_issues(self) -> list:
        """Get all unclosed issues in the sprint, excluding epics and sub-tasks.

        Pages are requested until one comes back short. A failure on any page
        invalidates the whole batch.

        Raises:
            SprintFetchError: a page request failed
        """
        all_issues = []
        start_at = 0

        while True:
            try:
                data = self.client.get(
                    self.SEARCH_ENDPOINT,
                    params={
                        "jql": self._search_jql(),
                        "startAt": start_at,
                        "maxResults": self.PAGE_SIZE,
                        "fields": ",".join(FIELD_IDS)
                    }
                )
            except JiraRequestError as e:
                logger.error(f"Exception: Retrieving of the Jira issues failed ({e}).")
                if e.response_content:
                    logger.error(e.response_content)
                raise SprintFetchError(self.sprint_id, e) from e

            page = SearchResultPage.from_json(data)
            all_issues.extend(page.issues)

            if len(page.issues) < self.PAGE_SIZE:
                break

            start_at += len(page.issues)

        return all_issues

    def is_tracked_epic_key(self, epic_key: Optional[str]) -> bool:
        """Check the epic link belongs to the tracked project."""
        return bool(epic_key) and epic_key.startswith(f"{self.epic_project_key}-")

    def extract_epic_keys(self, issues: list) -> set:
        """Distinct epic keys of the tracked project referenced by the issues."""
        return {
            issue.fields.epic_key
            for issue in issues
            if self.is_tracked_epic_key(issue.fields.epic_key)
        }

    def _fetch_epic(self, epic_key: str) -> Optional[Epic]:
        try:
            data = self.client.get(
                self.ISSUE_ENDPOINT.format(key=epic_key),
                params={"fields": ",".join(FIELD_IDS)}
            )
        except JiraRequestError as e:
            logger.warning(f"Exception: Retrieving of the Jira epic {epic_key} failed ({e}).")
            if e.response_content:
                logger.warning(e.response_content)
            return None

        return Epic.from_json(data)

    def fetch_epics(self, epic_keys: set) -> dict:
        """Fetch epics in parallel, one request per key.

        One worker thread per epic, without a limit, so very large sprints
        open that many concurrent connections.

        Returns:
            Dict mapping epic key to Epic, or None where the fetch failed
        """
        if not epic_keys:
            return {}

        keys = sorted(epic_keys)
        with ThreadPoolExecutor(max_workers=len(keys)) as executor:
            epics = list(executor.map(self._fetch_epic, keys))

        return dict(zip(keys, epics))

    def process_issue(self, issue: Issue, epic: Optional[Epic] = None) -> ProcessingOutcome:
        """Score an issue and store the score if it changed."""
        epic_fields = epic.fields if epic is not None else None
        total = calculate_total(issue.fields, epic_fields)

        if total == issue.fields.total:
            return ProcessingOutcome.unchanged(issue.key)

        try:
            self.client.put(
                self.ISSUE_ENDPOINT.format(key=issue.key),
                {"fields": {TOTAL_FIELD: total}}
            )
        except Exception as e:
            return ProcessingOutcome.failed(issue.key, f"{issue.key}: {e}")

        logger.info(f"{issue.key}: total changed from {issue.fields.total} to {total}")
        return ProcessingOutcome.updated(issue.key)

    def _epic_for(self, issue: Issue, epics: dict) -> Optional[Epic]:
        if not self.is_tracked_epic_key(issue.fields.epic_key):
            return None
        return epics.get(issue.fields.epic_key)

    def process_issues(self, issues: list, epics: dict) -> list:
        """Process all issues in parallel; outcomes keep the issue order.

        Starts one worker thread per issue. The fan-out is unbounded and grows
        with the sprint size.
        """
        if not issues:
            return []

        def process(issue):
            return self.process_issue(issue, self._epic_for(issue, epics))

        with ThreadPoolExecutor(max_workers=len(issues)) as executor:
            return list(executor.map(process, issues))

    def _notify(self, subject: str, body: str):
        if self.notifier is None:
            return

        error = self.notifier.send(subject, body)
        if error:
            logger.error(error)

    def report(self, report: PrioritizationReport):
        """Log the final counts and send a notification about failures."""
        logger.info("------------------------")
        logger.info("FINAL RESULTS")
        logger.info(f"Number of all issues: {report.total}")
        logger.info(f"Number of updated issues: {report.updated}")
        logger.info(f"Number of issues that didn't need to be updated: {report.unchanged}")
        logger.info(f"Number of issues whose update failed: {report.failed}")

        failures = report.failures
        if not failures:
            return

        logger.error("Issues whose update failed:")
        for outcome in failures:
            logger.error(outcome.reason)

        details = "\n\n".join(o.reason for o in failures)
        self._notify(
            f"{self.epic_project_key} prioritization ended with errors",
            f"Prioritization ended with the following errors in updates:\n\n{details}"
        )

    def run(self) -> PrioritizationReport:
        """Prioritize the sprint from start to finish."""
        report = PrioritizationReport(sprint_id=self.sprint_id)

        try:
            issues = self.fetch_sprint_issues()
        except SprintFetchError as e:
            report.fetch_failed = True
            self._notify(
                f"{self.epic_project_key} prioritization could not retrieve the sprint",
                f"The tool could not retrieve the issues of the given sprint (ID: {self.sprint_id}).\n\n{e}"
            )
            self.report(report)
            return report

        if not issues:
            logger.info(f"There are no issues in sprint {self.sprint_id}.")
            self._notify(
                f"{self.epic_project_key} prioritization feels kinda weird",
                f"The tool hasn't found any issue in the given sprint (ID: {self.sprint_id}). "
                f"Is this really the sprint you want to prioritize?"
            )
            self.report(report)
            return report

        logger.info(f"There are {len(issues)} issues to prioritize in sprint {self.sprint_id}.")

        epic_keys = self.extract_epic_keys(issues)
        logger.info(f"Retrieving {len(epic_keys)} epics.")
        epics = self.fetch_epics(epic_keys)

        report.outcomes = self.process_issues(issues, epics)
        self.report(report)
        return report
