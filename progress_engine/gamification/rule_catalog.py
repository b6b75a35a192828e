"""
Rule Catalog

Immutable, validated list of achievement definitions.

The catalog is validated once at construction. A malformed definition
(unknown type, missing fields for its variant, mismatched tier lists,
duplicate id) is recorded as a CatalogIssue and left out; every other
rule stays evaluable. With strict=True the first issue raises instead.
"""

from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Union
import json
import logging

from pydantic import ValidationError as PydanticValidationError

from progress_engine.exceptions import CatalogValidationError, ConfigurationError, RuleNotFoundError
from progress_engine.models.achievement import RULE_CLASSES, AchievementRuleBase, CatalogIssue, rule_adapter

logger = logging.getLogger(__name__)

RuleDefinition = Union[AchievementRuleBase, Mapping[str, Any]]


def _describe_errors(error: PydanticValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)


class RuleCatalog:
    """Validated achievement rules in definition order"""

    def __init__(self, definitions: Iterable[RuleDefinition], strict: bool = False):
        self._rules: List[AchievementRuleBase] = []
        self._by_id: dict[str, AchievementRuleBase] = {}
        self._issues: List[CatalogIssue] = []

        for index, definition in enumerate(definitions):
            rule_id = self._definition_id(definition)
            if isinstance(definition, AchievementRuleBase) and not isinstance(definition, RULE_CLASSES):
                self._reject(
                    index, rule_id, f"unsupported rule class '{type(definition).__name__}'", strict
                )
                continue

            try:
                if isinstance(definition, RULE_CLASSES):
                    rule = definition
                else:
                    rule = rule_adapter.validate_python(definition)
            except PydanticValidationError as e:
                self._reject(index, rule_id, _describe_errors(e), strict)
                continue

            if rule.id in self._by_id:
                self._reject(index, rule.id, f"duplicate achievement id '{rule.id}'", strict)
                continue

            self._rules.append(rule)
            self._by_id[rule.id] = rule

        logger.info(
            f"Loaded achievement catalog: {len(self._rules)} rules, "
            f"{len(self._issues)} rejected"
        )

    @staticmethod
    def _definition_id(definition: RuleDefinition) -> Optional[str]:
        if isinstance(definition, AchievementRuleBase):
            return definition.id
        if isinstance(definition, Mapping):
            rule_id = definition.get("id")
            return str(rule_id) if rule_id is not None else None
        return None

    def _reject(self, index: int, rule_id: Optional[str], reason: str, strict: bool) -> None:
        if strict:
            raise CatalogValidationError(
                f"Invalid achievement definition at index {index}: {reason}",
                rule_id=rule_id,
                reason=reason,
                operation="load_catalog",
            )
        self._issues.append(CatalogIssue(rule_id=rule_id, index=index, reason=reason))
        logger.warning(f"Rejected achievement '{rule_id}' (index {index}): {reason}")

    @property
    def rules(self) -> tuple:
        return tuple(self._rules)

    @property
    def issues(self) -> tuple:
        """Rules that failed validation, identified by id"""
        return tuple(self._issues)

    @property
    def ids(self) -> List[str]:
        return [rule.id for rule in self._rules]

    def find(self, rule_id: str) -> Optional[AchievementRuleBase]:
        return self._by_id.get(rule_id)

    def get(self, rule_id: str) -> AchievementRuleBase:
        rule = self._by_id.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(f"No achievement with id '{rule_id}'", rule_id=rule_id)
        return rule

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def __iter__(self) -> Iterator[AchievementRuleBase]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


def load_catalog_file(path: Union[str, Path], strict: bool = False) -> RuleCatalog:
    """
    Load a catalog from a JSON file holding an array of rule objects

    Raises:
        ConfigurationError: File missing, unreadable, or not a JSON array
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read achievement catalog {path}",
            config_key="ACHIEVEMENT_CATALOG_PATH",
            cause=e,
        )
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Achievement catalog {path} is not valid JSON: {e}",
            config_key="ACHIEVEMENT_CATALOG_PATH",
            cause=e,
        )

    if not isinstance(data, list):
        raise ConfigurationError(
            f"Achievement catalog {path} must contain a JSON array",
            config_key="ACHIEVEMENT_CATALOG_PATH",
        )
    return RuleCatalog(data, strict=strict)


def load_configured_catalog() -> RuleCatalog:
    """Catalog named by ACHIEVEMENT_CATALOG_PATH, or the built-in onboarding set"""
    from progress_engine import config
    from progress_engine.gamification.achievements_data import ONBOARDING_ACHIEVEMENTS

    if config.ACHIEVEMENT_CATALOG_PATH:
        return load_catalog_file(config.ACHIEVEMENT_CATALOG_PATH, strict=config.STRICT_CATALOG)
    return RuleCatalog(ONBOARDING_ACHIEVEMENTS, strict=config.STRICT_CATALOG)
