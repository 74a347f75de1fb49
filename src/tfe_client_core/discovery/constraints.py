"""Version compatibility checks against remote-declared constraints.

A host may declare which client versions it supports through its
``versions.v1`` service. This module evaluates the running version against
such a declaration and produces upgrade or downgrade guidance on mismatch.

Example:
    ```python
    from tfe_client_core.discovery.constraints import VersionConstraints, check_constraints

    constraints = VersionConstraints(minimum="1.0.0", maximum="2.0.0", excluding=["1.5.0"])
    check_constraints(constraints, "1.5.0")  # raises ConstraintViolationError
    ```
"""

from dataclasses import dataclass, field
from typing import Any

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from tfe_client_core.errors import ConstraintCheckError, ConstraintViolationError
from tfe_client_core.version import __version__

PRODUCT_NAME = "tfe-client-core"


@dataclass
class VersionConstraints:
    """Remote-declared version constraints for a service.

    Absence of both minimum and maximum means no constraint is declared.
    """

    minimum: str | None = None
    maximum: str | None = None
    excluding: list[str] = field(default_factory=list)

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "VersionConstraints":
        """Build constraints from a decoded constraints document.

        Raises:
            ConstraintCheckError: If ``excluding`` is not a list.
        """
        excluding = data.get("excluding") or []
        if not isinstance(excluding, list):
            raise _check_failed(TypeError(f"expected a list of excluded versions, got {excluding!r}"))
        return cls(
            minimum=data.get("minimum") or None,
            maximum=data.get("maximum") or None,
            excluding=[str(v) for v in excluding],
        )

    @property
    def declared(self) -> bool:
        return bool(self.minimum or self.maximum)


def _parse_version(value: str) -> Version:
    try:
        return Version(value)
    except (InvalidVersion, TypeError) as e:
        raise _check_failed(e) from e


def _check_failed(err: Exception) -> ConstraintCheckError:
    return ConstraintCheckError(
        f"failed to check version constraints: {err}\n\n"
        "checking version constraints is considered optional, but this is an\n"
        "unexpected error which should be reported"
    )


def check_constraints(constraints: VersionConstraints | None, current_version: str = __version__) -> None:
    """Check the running version against remote-declared constraints.

    Args:
        constraints: Constraints fetched from the host, or None.
        current_version: Version to check, defaults to the library version.

    Raises:
        ConstraintViolationError: If the version is not compatible. The
            error carries a short summary and a detail block.
        ConstraintCheckError: If any version string is malformed. This is
            advisory and callers are expected to log and continue.
    """
    if constraints is None or not constraints.declared:
        return

    minimum = _parse_version(constraints.minimum) if constraints.minimum else None
    maximum = _parse_version(constraints.maximum) if constraints.maximum else None
    excludes = sorted(_parse_version(v) for v in constraints.excluding)
    current = _parse_version(current_version)

    clauses = []
    if minimum is not None:
        clauses.append(f">={minimum}")
    if maximum is not None:
        clauses.append(f"<={maximum}")
    clauses.extend(f"!={v}" for v in excludes)

    try:
        specifiers = SpecifierSet(",".join(clauses))
    except InvalidSpecifier as e:
        raise _check_failed(e) from e

    if specifiers.contains(current, prereleases=True):
        return

    action = to_version = ""
    if minimum is not None and current < minimum:
        action, to_version = "upgrade", f">= {minimum}"
    elif maximum is not None and current > maximum:
        action, to_version = "downgrade", f"<= {maximum}"
    elif excludes:
        action, to_version = "upgrade", f"> {excludes[-1]}"

    if len(excludes) == 1:
        excluding = f", excluding version {excludes[0]}"
    elif len(excludes) > 1:
        excluding = f", excluding versions {', '.join(str(v) for v in excludes)}"
    else:
        excluding = ""

    bounds = []
    if constraints.minimum:
        bounds.append(f">= {constraints.minimum}")
    if constraints.maximum:
        bounds.append(f"<= {constraints.maximum}")

    detail = (
        f"The configured Terraform Enterprise backend is compatible with {PRODUCT_NAME}\n"
        f"versions {', '.join(bounds)}{excluding}."
    )

    if action:
        remediation = f"{action} to {to_version}"
        summary = f"Please {action} {PRODUCT_NAME} to {to_version}"
    else:
        remediation = None
        summary = f"Incompatible {PRODUCT_NAME} version v{current}"

    raise ConstraintViolationError(summary, detail, remediation=remediation, current_version=str(current))
