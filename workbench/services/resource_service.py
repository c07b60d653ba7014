"""Resource registry: maps a router mount path and HTTP verb to (resource, action)."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from workbench.core.exceptions import InternalError
from workbench.models.permission import ACTION_ORDER, Action, normalize_resource

logger = logging.getLogger(__name__)


class ResourceRegistry:
    """Static table of protected mounts, filled in while routers are registered.

    Resolution never looks at the concrete request URL, only at the mount the
    router was registered under, so path parameters can't be mistaken for
    resources.
    """

    def __init__(self, method_actions: Dict[str, str]):
        self.method_actions: Dict[str, Action] = {
            method.upper(): Action(action) for method, action in method_actions.items()
        }
        self._resources: Dict[str, str] = {}
        self._methods: Dict[str, List[str]] = {}

    def register(self, mount_path: str, resource: str, methods: Optional[Iterable[str]] = None) -> None:
        resource = normalize_resource(resource)
        existing = self._resources.get(mount_path)
        if existing is not None and existing != resource:
            raise InternalError(f"Mount {mount_path} is already registered as '{existing}'")

        allowed = [m.upper() for m in (methods or self.method_actions)]
        unknown = [m for m in allowed if m not in self.method_actions]
        if unknown:
            raise InternalError("HTTP method not supported", data={"methods": unknown})

        self._resources[mount_path] = resource
        self._methods[mount_path] = allowed
        logger.debug("Registered resource %s at %s", resource, mount_path)

    def action_for(self, method: str) -> Action:
        action = self.method_actions.get(method.upper())
        if action is None:
            raise InternalError("HTTP method not supported")
        return action

    def resource_for(self, mount_path: str) -> str:
        resource = self._resources.get(mount_path)
        if resource is None:
            raise InternalError("Resource not found")
        return resource

    def resolve(self, mount_path: str, method: str) -> Tuple[str, Action]:
        """Return the ``(resource, action)`` a request on ``mount_path`` needs.

        Raises:
            InternalError: For an unmapped verb or an unregistered mount.
        """
        action = self.action_for(method)
        return self.resource_for(mount_path), action

    def resource_names(self) -> List[str]:
        return sorted(set(self._resources.values()))

    def resources(self) -> List[Dict[str, object]]:
        """Catalogue of every registered resource with its verbs and actions."""
        catalogue = []
        for path, name in sorted(self._resources.items(), key=lambda item: item[1]):
            methods = self._methods[path]
            actions = {self.method_actions[m].value for m in methods}
            catalogue.append({
                "name": name,
                "path": path,
                "methods": methods,
                "actions": [a for a in ACTION_ORDER if a in actions],
            })
        return catalogue

    def allowed_method_actions(self) -> Dict[str, str]:
        return {method: action.value for method, action in self.method_actions.items()}
