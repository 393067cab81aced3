"""Steering document validation.

Documents are scanned once, line by line, into a DocumentProfile (headings,
fences, list items, links, example markers). Structure, quality and
formatting checks then run against the profile, never against the raw text,
so validation stays linear in document size.

Quality heuristics are named QualityRule objects; apps can pass their own
rule set to SteeringValidator.
"""

import re
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .config import DEFAULT_REQUIRED_SECTIONS

_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*))?$")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+\S")
_LINK_RE = re.compile(r"\[([^\[\]\n]*)\]\(([^()\n]*)\)")
_EXAMPLE_RE = re.compile(r"\bexample:|\bfor example\b", re.IGNORECASE)

MIN_CONTENT_LENGTH = 500


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueKind(str, Enum):
    MISSING_SECTION = "missing-section"
    POOR_CONTENT_QUALITY = "poor-content-quality"
    FORMATTING_ISSUE = "formatting-issue"


class TextRange(BaseModel):
    """Zero-based line/character span inside a document."""

    model_config = ConfigDict(frozen=True)

    start_line: int = 0
    start_character: int = 0
    end_line: int = 0
    end_character: int = 0

    @classmethod
    def line(cls, index: int, start: int = 0, end: int = 0) -> "TextRange":
        return cls(start_line=index, start_character=start, end_line=index, end_character=end)


DOCUMENT_START = TextRange()


class ValidationIssue(BaseModel):
    """A single diagnostic anchored to a range of the document."""

    model_config = ConfigDict(frozen=True)

    severity: IssueSeverity
    kind: IssueKind
    code: str
    message: str
    range: TextRange = DOCUMENT_START
    section: str | None = None
    suggestion: str = ""


class ValidationResult(BaseModel):
    """Ordered validation issues; passed when no issue is an error."""

    model_config = ConfigDict(frozen=True)

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    line: int
    length: int


@dataclass(frozen=True)
class Link:
    text: str
    url: str
    line: int
    start: int
    end: int


@dataclass
class DocumentProfile:
    """Everything the checks need, collected in one pass over the lines."""

    headings: list[Heading] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    code_blocks: int = 0
    unclosed_fence_line: int | None = None
    unclosed_fence_length: int = 0
    list_items: int = 0
    example_markers: int = 0
    character_count: int = 0

    @property
    def has_actionable_markers(self) -> bool:
        return self.code_blocks > 0 or self.list_items > 0

    @property
    def has_examples(self) -> bool:
        return self.code_blocks > 0 or self.example_markers > 0


def profile_document(content: str) -> DocumentProfile:
    """Scan `content` once and collect its structural features."""
    profile = DocumentProfile(character_count=len(content.strip()))
    fence_line: int | None = None
    fence_length = 0

    for index, line in enumerate(content.split("\n")):
        line = line.rstrip("\r")
        stripped = line.strip()

        if stripped.startswith("```"):
            if fence_line is None:
                fence_line, fence_length = index, len(line)
            else:
                fence_line = None
                profile.code_blocks += 1
            continue
        if fence_line is not None:
            continue

        if stripped.startswith("#"):
            match = _HEADING_RE.match(line)
            if match:
                text = (match.group(2) or "").strip()
                profile.headings.append(Heading(len(match.group(1)), text, index, len(line)))
                if text.lower().startswith("example"):
                    profile.example_markers += 1
                continue

        if _LIST_ITEM_RE.match(line):
            profile.list_items += 1

        if not profile.example_markers and _EXAMPLE_RE.search(line):
            profile.example_markers += 1

        if "](" in line:
            for match in _LINK_RE.finditer(line):
                profile.links.append(Link(match.group(1), match.group(2), index, match.start(), match.end()))

    if fence_line is not None:
        profile.unclosed_fence_line = fence_line
        profile.unclosed_fence_length = fence_length
    return profile


@dataclass(frozen=True)
class QualityRule:
    """Named content-quality heuristic; `passes` returning False raises an issue."""

    name: str
    passes: Callable[[DocumentProfile], bool]
    message: str
    suggestion: str
    severity: IssueSeverity = IssueSeverity.WARNING

    def check(self, profile: DocumentProfile) -> list[ValidationIssue]:
        if self.passes(profile):
            return []
        return [
            ValidationIssue(
                severity=self.severity,
                kind=IssueKind.POOR_CONTENT_QUALITY,
                code=self.name,
                message=self.message,
                suggestion=self.suggestion,
            )
        ]


ACTIONABLE_GUIDANCE_RULE = QualityRule(
    name="actionable-guidance",
    passes=lambda p: p.has_actionable_markers,
    message="Document lacks actionable guidance: it contains only prose",
    suggestion="Add bullet points, numbered steps or code blocks describing what to do",
)

EXAMPLES_RULE = QualityRule(
    name="examples",
    passes=lambda p: p.has_examples,
    message="Document should include examples to illustrate key concepts",
    suggestion="Add a code block or an 'Example' section",
)

CONTENT_LENGTH_RULE = QualityRule(
    name="content-length",
    passes=lambda p: p.character_count >= MIN_CONTENT_LENGTH,
    message="Document appears too short",
    suggestion="Consider adding more detailed guidance and examples",
)

DEFAULT_QUALITY_RULES: tuple[QualityRule, ...] = (ACTIONABLE_GUIDANCE_RULE, EXAMPLES_RULE, CONTENT_LENGTH_RULE)


class SteeringValidator:
    """
    Validate steering documents against structure, quality and formatting rules.

    Example:
        >>> validator = SteeringValidator()
        >>> result = validator.validate(text)
        >>> if not result.passed:
        ...     for issue in result.errors:
        ...         print(issue.range.start_line, issue.message)
    """

    def __init__(
        self,
        required_sections: Sequence[str] = DEFAULT_REQUIRED_SECTIONS,
        quality_rules: Sequence[QualityRule] = DEFAULT_QUALITY_RULES,
    ):
        self.required_sections = tuple(required_sections)
        self.quality_rules = tuple(quality_rules)

    def validate(self, content: str) -> ValidationResult:
        profile = profile_document(content)
        issues = [
            *self.check_structure(profile),
            *self.check_quality(profile),
            *self.check_formatting(profile),
        ]
        return ValidationResult(issues=issues)

    def check_structure(self, profile: DocumentProfile) -> list[ValidationIssue]:
        """One error per required section with no heading starting with its name."""
        heading_texts = [h.text.lower() for h in profile.headings]
        issues = []
        for section in self.required_sections:
            wanted = section.lower()
            if any(text.startswith(wanted) for text in heading_texts):
                continue
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    kind=IssueKind.MISSING_SECTION,
                    code="missing-section",
                    message=f'Missing required section: "{section}"',
                    section=section,
                    suggestion=f"Add a '## {section}' heading",
                )
            )
        return issues

    def check_quality(self, profile: DocumentProfile) -> list[ValidationIssue]:
        issues = []
        for rule in self.quality_rules:
            issues.extend(rule.check(profile))
        return issues

    def check_formatting(self, profile: DocumentProfile) -> list[ValidationIssue]:
        issues = []
        previous_level = 0
        for heading in profile.headings:
            anchor = TextRange.line(heading.line, 0, heading.length)
            if not heading.text:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        kind=IssueKind.FORMATTING_ISSUE,
                        code="empty-heading",
                        message="Heading cannot be empty",
                        range=anchor,
                        suggestion="Add heading text or remove the line",
                    )
                )
            if previous_level and heading.level > previous_level + 1:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.WARNING,
                        kind=IssueKind.FORMATTING_ISSUE,
                        code="heading-hierarchy",
                        message=f"Heading level skipped (from {previous_level} to {heading.level})",
                        range=anchor,
                        section=heading.text or None,
                        suggestion=f"Use a level {previous_level + 1} heading here",
                    )
                )
            previous_level = heading.level

        if profile.unclosed_fence_line is not None:
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    kind=IssueKind.FORMATTING_ISSUE,
                    code="unclosed-code-block",
                    message="Code block is not closed (missing closing ```)",
                    range=TextRange.line(profile.unclosed_fence_line, 0, profile.unclosed_fence_length),
                    suggestion="Add a closing ``` line",
                )
            )

        for link in profile.links:
            anchor = TextRange.line(link.line, link.start, link.end)
            if not link.text.strip():
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.WARNING,
                        kind=IssueKind.FORMATTING_ISSUE,
                        code="empty-link-text",
                        message="Link has empty text",
                        range=anchor,
                        suggestion="Describe the link target",
                    )
                )
            if not link.url.strip():
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        kind=IssueKind.FORMATTING_ISSUE,
                        code="empty-link-url",
                        message="Link has empty URL",
                        range=anchor,
                        suggestion="Add the link target or remove the link",
                    )
                )
        return issues
