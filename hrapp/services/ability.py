"""권한(능력) 규칙 모듈 — 직급 기반 capability check.

Ability rules — designation-based capability check consumed by the HTTP
layer before elevated operations. The attendance service never evaluates
these rules itself; it only asks the EmployeeDirectory whether an employee
is elevated.

Rule table:
    founder:          manage all
    hr:               read/create Attendance
    project_manager:  read/create Attendance
    others:           create Attendance, read own Attendance (employee_id = self)
"""

from dataclasses import dataclass, field
from typing import Any

from hrapp.models.employee import Employee

# 모든 동작/대상 와일드카드 — Wildcards
MANAGE: str = "manage"
ALL: str = "all"


@dataclass(frozen=True)
class Rule:
    """단일 허용 규칙 — One allow rule, optionally constrained by attribute conditions."""

    actions: frozenset[str]
    subject: str
    conditions: dict[str, Any] = field(default_factory=dict)

    def matches(self, action: str, subject: str, attrs: dict[str, Any] | None) -> bool:
        if MANAGE not in self.actions and action not in self.actions:
            return False
        if self.subject != ALL and self.subject != subject:
            return False
        if not self.conditions:
            return True
        # 조건부 규칙은 대상 속성이 주어지고 모두 일치할 때만 허용
        if attrs is None:
            return False
        return all(attrs.get(key) == value for key, value in self.conditions.items())


class Ability:
    """직원 한 명의 허용 규칙 집합 — Set of allow rules for one employee."""

    def __init__(self, rules: list[Rule] | None = None) -> None:
        self.rules: list[Rule] = rules or []

    def allow(self, actions: str | list[str], subject: str, **conditions: Any) -> None:
        names = [actions] if isinstance(actions, str) else actions
        self.rules.append(Rule(frozenset(names), subject, dict(conditions)))

    def can(self, action: str, subject: str, attrs: dict[str, Any] | None = None) -> bool:
        """허용 여부를 판단합니다.

        Return True when any rule allows ``action`` on ``subject``.
        Conditional rules (e.g. "own records only") only match when ``attrs``
        describing the concrete resource are supplied and satisfy them.

        Args:
            action: 동작 (e.g. "read", "create")
            subject: 대상 (e.g. "Attendance")
            attrs: 대상 리소스 속성, 선택 (Concrete resource attributes)

        Returns:
            bool: 허용 여부 (Whether the action is allowed)
        """
        return any(rule.matches(action, subject, attrs) for rule in self.rules)


def define_abilities_for(employee: Employee | None) -> Ability:
    """직급에 따라 허용 규칙을 구성합니다.

    Build the ability of an employee from its designation.
    An unknown caller gets no rules at all.
    """
    ability = Ability()
    if employee is None:
        return ability

    if employee.designation == "founder":
        ability.allow(MANAGE, ALL)
    elif employee.designation in ("hr", "project_manager"):
        ability.allow(["read", "create"], "Attendance")
    else:
        ability.allow("create", "Attendance")
        ability.allow("read", "Attendance", employee_id=employee.id)

    return ability
