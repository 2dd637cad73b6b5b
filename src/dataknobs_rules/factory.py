"""Building rule declarations from configuration."""

import importlib
import logging
import re
from collections.abc import Hashable
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError
from .rules import RuleDeclaration, RuleOptions, RuleRegistry, rule_registry
from .values import is_real_number

logger = logging.getLogger(__name__)


class RuleSetFactory:
    """Factory registering rule declarations from configuration.

    Configuration Options:
        owner (str): Default owner type import path for entries without one
        source (str): Label used as the declaration location (``<source>#rules[i]``)
        rules (list): List of rule definitions

    Rule Definition Options:
        owner (str | type): Owner type, as an import path or the class itself
        property (str): Property name
        type (str): Rule type name (Min, Length, Matches, Custom, ...)
        constraints (list): Positional constraint arguments
        message (str): Message overriding the default failure message
        each (bool): Apply to every element of a sequence value (default: False)
        priority (number): Higher runs first within a property (default: 0)

    Example Configuration:
        owner: myapp.models.User
        rules:
          - property: username
            type: Length
            constraints: [3, 20]
          - property: username
            type: Matches
            constraints: ["^[a-zA-Z0-9_]+$"]
          - property: age
            type: Min
            constraints: [13]
            message: "Users must be 13 or older"
          - property: tags
            type: Custom
            constraints: [myapp.checks.is_known_tag]
            each: true
    """

    def __init__(self, registry: RuleRegistry | None = None):
        self.registry = registry if registry is not None else rule_registry

    def create(self, **config: Any) -> list[RuleDeclaration]:
        """Build and register declarations from configuration.

        Args:
            **config: Rule set configuration

        Returns:
            The registered declarations, in configuration order

        Raises:
            ConfigurationError: If an owner or callable cannot be resolved
        """
        rule_configs = config.get("rules", [])
        if not isinstance(rule_configs, list):
            raise ConfigurationError(
                "'rules' must be a list of rule definitions",
                context={"rules": type(rule_configs).__name__},
            )

        default_owner = config.get("owner")
        source = config.get("source")
        declarations = []

        for index, rule_config in enumerate(rule_configs):
            declaration = self._build_declaration(rule_config, default_owner, source, index)
            if declaration is not None:
                self.registry.add_rule(declaration)
                declarations.append(declaration)

        logger.info(f"Registered {len(declarations)} rule declarations in {self.registry.name}")
        return declarations

    def _build_declaration(
        self,
        rule_config: dict[str, Any],
        default_owner: Any,
        source: str | None,
        index: int,
    ) -> RuleDeclaration | None:
        """Build one declaration, or None for an incomplete definition."""
        if not isinstance(rule_config, dict):
            logger.warning(f"Rule definition {index} is not a mapping, skipping")
            return None

        property_key = rule_config.get("property")
        rule_type = rule_config.get("type")
        if not property_key or not rule_type:
            logger.warning(f"Rule definition {index} missing 'property' or 'type', skipping")
            return None
        if not isinstance(rule_type, str):
            raise ConfigurationError(
                f"Rule definition {index} has a non-string type: {rule_type!r}",
                context={"property": str(property_key), "type": repr(rule_type)},
            )
        if not isinstance(property_key, Hashable):
            raise ConfigurationError(
                f"Rule definition {index} has an unhashable property: {property_key!r}",
                context={"property": repr(property_key), "type": rule_type},
            )

        owner_ref = rule_config.get("owner", default_owner)
        if owner_ref is None:
            raise ConfigurationError(
                f"Rule definition {index} has no owner",
                context={"property": property_key, "type": rule_type},
            )
        owner = owner_ref if isinstance(owner_ref, type) else _load_object(owner_ref)
        if not isinstance(owner, type):
            raise ConfigurationError(f"Owner {owner_ref} is not a class", context={"owner": str(owner_ref)})

        constraints = rule_config.get("constraints", [])
        if not isinstance(constraints, (list, tuple)):
            constraints = [constraints]

        priority = rule_config.get("priority")
        if priority is not None and not is_real_number(priority):
            raise ConfigurationError(
                f"Rule definition {index} has a non-numeric priority: {priority!r}",
                context={"property": str(property_key), "type": rule_type, "priority": repr(priority)},
            )
        return RuleDeclaration(
            owner=owner,
            property_key=property_key,
            rule_type=rule_type,
            constraints=tuple(_resolve_constraints(rule_type, constraints)),
            options=RuleOptions(
                message=rule_config.get("message"),
                each=bool(rule_config.get("each", False)),
                priority=priority,
            ),
            at=f"{source}#rules[{index}]" if source else None,
        )


def _resolve_constraints(rule_type: str, constraints: list[Any] | tuple[Any, ...]) -> list[Any]:
    """Turn config-friendly constraint values into what the strategies expect."""
    if rule_type == "Custom":
        return [_load_object(c) if isinstance(c, str) else c for c in constraints]
    if rule_type == "Matches":
        resolved = []
        for constraint in constraints:
            if isinstance(constraint, str):
                try:
                    constraint = re.compile(constraint)
                except re.error as e:
                    raise ConfigurationError(
                        f"Invalid pattern {constraint!r}: {e}",
                        context={"pattern": constraint},
                    ) from e
            resolved.append(constraint)
        return resolved
    return list(constraints)


def _load_object(path: str) -> Any:
    """Load a class or function from a dotted import path.

    Raises:
        ConfigurationError: If the object cannot be loaded
    """
    if not isinstance(path, str) or "." not in path:
        raise ConfigurationError(f"Invalid import path: {path}", context={"path": str(path)})

    module_path, attr_name = path.rsplit(".", 1)
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigurationError(f"Failed to import {path}: {e}", context={"path": path}) from e

    if not hasattr(module, attr_name):
        raise ConfigurationError(f"{attr_name} not found in {module_path}", context={"path": path})
    return getattr(module, attr_name)


def load_rules(path: str | Path, registry: RuleRegistry | None = None) -> list[RuleDeclaration]:
    """Register the rules defined in a YAML file.

    Args:
        path: YAML file containing a rule set configuration
        registry: Target registry (shared registry by default)

    Returns:
        The registered declarations

    Raises:
        ConfigurationError: If the file is not a rule set mapping or refers to
            unresolvable owners or callables
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Rule file {path} must contain a mapping",
            context={"path": str(path)},
        )

    config.setdefault("source", str(path))
    return RuleSetFactory(registry).create(**config)


# Create singleton instance for registration
rule_set_factory = RuleSetFactory()
