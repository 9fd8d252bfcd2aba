"""
Core data structures for the validation system.

Defines the fundamental types used throughout the validation package:
- Severity: Issue severity levels (INFO, WARN, FAIL)
- ValidationStage: Points where findings are produced
- ValidationIssue: Individual finding (diagnostic event)
- ValidationResult: Collection of issues with pass/fail status
- ValidationError: Exception raised when validation fails
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional


class Severity(Enum):
    """Validation issue severity levels.

    - INFO: Informational, logged but doesn't affect pass/fail
    - WARN: Warning, generation continued but the map may be incomplete
    - FAIL: Error, a hard requirement of the layout was not met
    """
    INFO = auto()
    WARN = auto()
    FAIL = auto()

    def __str__(self) -> str:
        return self.name


class ValidationStage(Enum):
    """Points where validation findings are produced.

    - GENERATION: While the layout engine grows the map
    - AUDIT: When a finished layout is checked against its invariants
    """
    GENERATION = "generation"
    AUDIT = "audit"

    def __str__(self) -> str:
        return self.value


@dataclass
class ValidationIssue:
    """Represents a single validation finding.

    Attributes:
        severity: Issue severity (INFO, WARN, FAIL)
        code: Rule code (e.g., "GEN-001", "LAYOUT-002")
        message: Human-readable description
        remediation: Optional suggested fix
        room: Optional room index the finding is about
        door: Optional door id the finding is about
        template: Optional template name the finding is about
    """
    severity: Severity
    code: str
    message: str
    remediation: Optional[str] = None
    room: Optional[int] = None
    door: Optional[str] = None
    template: Optional[str] = None

    def format(self) -> str:
        """Format issue for display.

        Returns:
            [SEVERITY] CODE room=R door=D template=T :: message :: fix=FIX
        """
        room = '-' if self.room is None else str(self.room)
        door = self.door or '-'
        template = self.template or '-'
        fix = self.remediation or 'N/A'

        return (
            f"[{self.severity}] {self.code} "
            f"room={room} door={door} template={template} :: "
            f"{self.message} :: fix={fix}"
        )

    def __str__(self) -> str:
        return self.format()

    def to_dict(self) -> dict:
        return {
            'severity': str(self.severity),
            'code': self.code,
            'message': self.message,
            'remediation': self.remediation,
            'room': self.room,
            'door': self.door,
            'template': self.template,
        }


@dataclass
class ValidationResult:
    """Collection of validation issues with pass/fail determination.

    Attributes:
        issues: List of ValidationIssue objects
        stage: Stage this result is from

    Properties:
        passed: True if no FAIL severity issues
        failed: True if any FAIL severity issues
        warnings: List of WARN severity issues
        errors: List of FAIL severity issues
        infos: List of INFO severity issues
    """
    issues: List[ValidationIssue] = field(default_factory=list)
    stage: Optional[ValidationStage] = None

    @property
    def passed(self) -> bool:
        """Check if validation passed (no FAIL issues)."""
        return not any(i.severity == Severity.FAIL for i in self.issues)

    @property
    def failed(self) -> bool:
        """Check if validation failed (any FAIL issues)."""
        return any(i.severity == Severity.FAIL for i in self.issues)

    @property
    def warnings(self) -> List[ValidationIssue]:
        """Get all WARN severity issues."""
        return [i for i in self.issues if i.severity == Severity.WARN]

    @property
    def errors(self) -> List[ValidationIssue]:
        """Get all FAIL severity issues."""
        return [i for i in self.issues if i.severity == Severity.FAIL]

    @property
    def infos(self) -> List[ValidationIssue]:
        """Get all INFO severity issues."""
        return [i for i in self.issues if i.severity == Severity.INFO]

    def add_issue(self, issue: ValidationIssue) -> None:
        """Add an issue to the result."""
        self.issues.append(issue)

    def report(self) -> str:
        """Generate a formatted report of all issues.

        Returns:
            Multi-line string with all issues formatted
        """
        if not self.issues:
            return "Validation passed: No issues found"

        lines = []
        stage_str = f" ({self.stage})" if self.stage else ""
        status = "PASSED" if self.passed else "FAILED"
        lines.append(f"Validation {status}{stage_str}: {len(self.issues)} issue(s)")
        lines.append("-" * 60)

        # Group by severity
        for severity in [Severity.FAIL, Severity.WARN, Severity.INFO]:
            severity_issues = [i for i in self.issues if i.severity == severity]
            if severity_issues:
                lines.append(f"\n{severity.name} ({len(severity_issues)}):")
                for issue in severity_issues:
                    lines.append(issue.format())

        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'passed': self.passed,
            'stage': str(self.stage) if self.stage else None,
            'issue_count': len(self.issues),
            'fail_count': len(self.errors),
            'warn_count': len(self.warnings),
            'info_count': len(self.infos),
            'issues': [issue.to_dict() for issue in self.issues],
        }


class ValidationError(Exception):
    """Exception raised when validation fails with FAIL severity issues.

    Attributes:
        result: The ValidationResult that caused the failure
    """

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.report())
