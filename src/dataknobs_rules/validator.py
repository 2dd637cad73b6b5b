"""The validation engine: plan cache plus the reentrant ``validate`` entry point.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from .compiler import CompiledPlan, PlanCompiler
from .result import ValidationError, ValidatorOptions
from .rules import RuleRegistry
from .rules import rule_registry as shared_rules
from .strategies import StrategyRegistry
from .strategies import strategy_registry as shared_strategies
from .values import is_composite

logger = logging.getLogger(__name__)


class Validator:
    """Validates instances against the rules declared on their exact type.

    Each engine owns a plan cache keyed by type identity. Plans are compiled
    on first use of a type and kept for the engine's lifetime; declarations
    added to a type after its plan was cached are not picked up.

    Nested values are validated through the same entry point, so nested
    types share the cache. Objects already being validated higher up the
    current call are not re-entered, which keeps cyclic graphs finite.

    Args:
        rule_registry: Declarations to validate against (shared registry by default)
        strategy_registry: Rule strategies (shared registry by default)

    Example:
        ```python
        validator = Validator()
        errors = validator.validate(user, {"abort_early": True})
        if errors:
            logger.info([e.to_dict() for e in errors])
        ```
    """

    _default: Validator | None = None
    _default_lock = threading.Lock()

    def __init__(
        self,
        rule_registry: RuleRegistry | None = None,
        strategy_registry: StrategyRegistry | None = None,
    ):
        self.rules = rule_registry if rule_registry is not None else shared_rules
        self.strategies = strategy_registry if strategy_registry is not None else shared_strategies
        self.compiler = PlanCompiler(self.rules, self.strategies)
        self._plans: dict[type, CompiledPlan] = {}
        self._lock = threading.Lock()

    @classmethod
    def default(cls) -> Validator:
        """Get the process-wide engine bound to the shared registries."""
        with cls._default_lock:
            if cls._default is None:
                cls._default = cls()
            return cls._default

    def get_plan(self, owner: type) -> CompiledPlan:
        """Get the cached plan for a type, compiling it on first use.

        Args:
            owner: Exact owner type

        Returns:
            The type's CompiledPlan
        """
        plan = self._plans.get(owner)
        if plan is not None:
            return plan

        with self._lock:
            plan = self._plans.get(owner)
            if plan is None:
                plan = self.compiler.compile(owner)
                self._plans[owner] = plan
            return plan

    def is_cached(self, owner: type) -> bool:
        return owner in self._plans

    def clear_cache(self) -> None:
        """Drop all compiled plans. Intended for tests."""
        with self._lock:
            self._plans.clear()

    def validate(
        self,
        instance: Any,
        options: ValidatorOptions | Mapping[str, Any] | None = None,
    ) -> list[ValidationError]:
        """Validate an instance against the rules of its type.

        Never raises for data-driven outcomes. Values that are not composite
        (None, numbers, strings, ...) produce no findings.

        Args:
            instance: Object to validate
            options: ``ValidatorOptions`` or a mapping such as ``{"abort_early": True}``

        Returns:
            List of property errors, empty when every rule passed
        """
        return self._validate(instance, ValidatorOptions.resolve(options), set())

    def _validate(
        self,
        instance: Any,
        options: ValidatorOptions,
        active: set[int],
    ) -> list[ValidationError]:
        if not is_composite(instance) or id(instance) in active:
            return []

        plan = self.get_plan(type(instance))
        if not plan.executors:
            return []

        def validate_nested(value: Any) -> list[ValidationError]:
            return self._validate(value, options, active)

        errors: list[ValidationError] = []
        active.add(id(instance))
        try:
            for executor in plan:
                if options.abort_early and errors:
                    break
                error = executor.execute(instance, validate_nested, options)
                if error is not None:
                    errors.append(error)
        finally:
            active.discard(id(instance))
        return errors
