"""
Match policy and string helpers shared by the driver's wait operations.

A wait target is either ``Text`` (substring containment, or equality when
``exact``) or ``Pattern`` (regular expression search). Both know how to test an
actual value and how to describe themselves in failure messages.
"""
import re
from dataclasses import dataclass
from typing import Optional, Union

SLUG_MAX_LENGTH = 100


class MatchTarget:
    """Base for the values a title, URL or element text is waited against."""

    def test(self, actual: str) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def describe_negative(self) -> str:
        raise NotImplementedError

    def for_url(self, base_url: str) -> "MatchTarget":
        """Target to compare against a full URL."""
        return self


@dataclass(frozen=True)
class Text(MatchTarget):
    value: str
    exact: bool = False

    def test(self, actual: str) -> bool:
        if actual is None:
            return False
        if self.exact:
            return actual == self.value
        return self.value in actual

    def describe(self) -> str:
        verb = "is" if self.exact else "contains"
        return f"{verb}: '{self.value}'"

    def describe_negative(self) -> str:
        verb = "was not" if self.exact else "did not contain"
        return f"{verb}: '{self.value}'"

    def for_url(self, base_url: str) -> "MatchTarget":
        if self.exact:
            return Text(base_url + page_path(self.value), exact=True)
        return self


@dataclass(frozen=True)
class Pattern(MatchTarget):
    pattern: Union[str, "re.Pattern[str]"]

    def __post_init__(self):
        if isinstance(self.pattern, str):
            object.__setattr__(self, "pattern", re.compile(self.pattern))

    def test(self, actual: str) -> bool:
        return actual is not None and self.pattern.search(actual) is not None

    def describe(self) -> str:
        return f"matches: '{self.pattern.pattern}'"

    def describe_negative(self) -> str:
        return f"did not match: '{self.pattern.pattern}'"


def as_target(value: Union[str, "re.Pattern[str]", MatchTarget], exact: bool = False) -> MatchTarget:
    """Wrap a plain string as ``Text`` and a compiled regex as ``Pattern``."""
    if isinstance(value, MatchTarget):
        return value
    if isinstance(value, re.Pattern):
        return Pattern(value)
    return Text(value, exact=exact)


def page_path(page: str) -> str:
    """Ensure ``page`` begins with a slash."""
    if page.startswith("/"):
        return page
    return f"/{page}"


def slugify(message: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Lowercase ``message`` with runs of other characters collapsed to one hyphen."""
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", message.strip()).lower().strip("-")
    return slug[:max_length].rstrip("-")


def compose_selector(tag: str, element_id: Optional[str], class_name: Optional[str]) -> str:
    """Build ``tag#id.class1.class2`` from DOM attributes, skipping blank parts."""
    selector = tag
    if element_id and element_id.strip():
        selector += f"#{element_id.strip()}"
    if class_name and class_name.strip():
        selector += "." + ".".join(class_name.split())
    return selector
