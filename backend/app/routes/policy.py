"""
Mindtrail Backend - Route Access Policy
========================================

What:  The single table declaring which routes are public and which need a
       bearer token, plus the startup check that enforces it.
How:   `verify_route_policy(app)` walks every APIRoute, descending into included
       routers. It fails app creation if a route is missing from the table, if a
       declared route is not registered, or if a bearer route does not depend
       on `get_current_identity`.

Adding a route means adding a row here; forgetting to do so (or forgetting
the identity dependency) stops the server from starting.
"""

import enum
import logging
from typing import Any, Callable, Dict, Iterable, Iterator, Set, Tuple

from fastapi import FastAPI
from fastapi.dependencies.models import Dependant
from fastapi.routing import APIRoute

from app.dependencies import get_current_identity

logger = logging.getLogger(__name__)


class Access(str, enum.Enum):
    PUBLIC = "public"
    BEARER = "bearer"


ROUTE_ACCESS: Dict[Tuple[str, str], Access] = {
    ("GET", "/"): Access.PUBLIC,
    ("GET", "/health"): Access.PUBLIC,
    ("POST", "/auth/register"): Access.PUBLIC,
    ("POST", "/auth/login"): Access.PUBLIC,
    ("GET", "/auth/me"): Access.BEARER,
    ("POST", "/api/save-answers"): Access.BEARER,
    ("POST", "/api/journal"): Access.BEARER,
    ("POST", "/api/save-muscles"): Access.BEARER,
    ("POST", "/api/story-answers"): Access.BEARER,
    ("POST", "/api/savePostExperience"): Access.BEARER,
    ("POST", "/api/saveAudio"): Access.BEARER,
    ("POST", "/api/profile"): Access.BEARER,
}


class RoutePolicyError(RuntimeError):
    """A registered route disagrees with ROUTE_ACCESS."""


def _dependency_calls(dependant: Dependant) -> Iterable[Callable]:
    for sub in dependant.dependencies:
        if sub.call is not None:
            yield sub.call
        yield from _dependency_calls(sub)


def _iter_api_routes(
    routes: Iterable[Any], prefix: str = "", inherited: Tuple[Callable, ...] = ()
) -> Iterator[Tuple[str, APIRoute, Tuple[Callable, ...]]]:
    """
    Yield (full path, route, include-level dependency calls) for every
    APIRoute reachable from `routes`.

    Depending on the FastAPI release, `include_router` either copies the
    routes into the parent (already prefixed, dependencies merged) or keeps
    the router behind a wrapper with `original_router` and an
    `include_context` holding the extra prefix and dependencies.
    """
    for route in routes:
        if isinstance(route, APIRoute):
            yield prefix + route.path, route, inherited
            continue

        included = getattr(route, "original_router", None)
        if included is None:
            continue
        context = getattr(route, "include_context", None)
        extra = tuple(
            dep.dependency
            for dep in (getattr(context, "dependencies", None) or ())
            if getattr(dep, "dependency", None) is not None
        )
        yield from _iter_api_routes(
            included.routes,
            prefix + (getattr(context, "prefix", "") or ""),
            inherited + extra,
        )


def verify_route_policy(
    app: FastAPI, table: Dict[Tuple[str, str], Access] = ROUTE_ACCESS
) -> Set[Tuple[str, str]]:
    """
    Check every API route of `app`, including those behind included
    routers, against `table`.

    Returns:
        The (method, path) pairs that were checked.

    Raises:
        RoutePolicyError: listing every undeclared, unguarded or
            unregistered route, or when no API route is found at all.
    """
    problems = []
    seen: Set[Tuple[str, str]] = set()

    for path, route, inherited in _iter_api_routes(app.routes):
        calls = set(_dependency_calls(route.dependant)) | set(inherited)
        for method in sorted(route.methods):
            key = (method, path)
            seen.add(key)
            access = table.get(key)
            if access is None:
                problems.append(f"{method} {path} has no declared access level")
            elif access is Access.BEARER and get_current_identity not in calls:
                problems.append(f"{method} {path} is bearer but does not verify the token")

    if not seen:
        problems.append("no API routes are registered")

    for method, path in sorted(set(table) - seen):
        problems.append(f"{method} {path} is declared but not registered")

    if problems:
        raise RoutePolicyError("; ".join(problems))

    logger.info("Route policy verified for %d routes", len(seen))
    return seen
