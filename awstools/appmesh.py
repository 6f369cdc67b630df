"""App Mesh discovery: routes, virtual services and the connections between nodes."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class AppMeshVirtualServiceRoute:
    """A weighted route from a virtual router to a virtual node."""

    router: str = ""
    path: str = ""
    destination_node: str = ""
    weight: int = 0


@dataclass
class AppMeshVirtualServicePath:
    """A virtual node a service reaches, and one backend service of that node."""

    virtual_node: str = ""
    service_name: str = ""


@dataclass
class AppMeshVirtualService:
    """A virtual service with its routes and the paths through its nodes."""

    virtual_service_name: str = ""
    virtual_service_routes: list[AppMeshVirtualServiceRoute] = field(default_factory=list)
    virtual_service_paths: list[AppMeshVirtualServicePath] = field(default_factory=list)

    def add_path(self, path: AppMeshVirtualServicePath) -> None:
        self.virtual_service_paths.append(path)


@dataclass
class AppMeshVirtualNode:
    """A virtual node with the services it calls and the nodes behind them."""

    virtual_node_name: str = ""
    backend_services: list[str] = field(default_factory=list)
    backend_nodes: list[str] = field(default_factory=list)


def get_all_app_mesh_routes(mesh_name: str, svc: Any) -> list[dict[str, Any]]:
    """Return the route references of every virtual router in the mesh."""
    routers = svc.list_virtual_routers(meshName=mesh_name).get("virtualRouters") or []
    routes: list[dict[str, Any]] = []
    for router in routers:
        response = svc.list_routes(
            meshName=mesh_name, virtualRouterName=router.get("virtualRouterName")
        )
        routes.extend(response.get("routes") or [])
    return routes


def get_app_mesh_route_descriptions(mesh_name: str, svc: Any) -> list[dict[str, Any]]:
    """Return the full description of every route in the mesh."""
    return [
        svc.describe_route(
            meshName=route.get("meshName"),
            routeName=route.get("routeName"),
            virtualRouterName=route.get("virtualRouterName"),
        ).get("route")
        for route in get_all_app_mesh_routes(mesh_name, svc)
    ]


def get_all_app_mesh_nodes(mesh_name: str, svc: Any) -> list[dict[str, Any]]:
    """Return the full description of every virtual node in the mesh."""
    nodes = svc.list_virtual_nodes(meshName=mesh_name).get("virtualNodes") or []
    return [
        svc.describe_virtual_node(
            meshName=node.get("meshName"), virtualNodeName=node.get("virtualNodeName")
        ).get("virtualNode")
        for node in nodes
    ]


def get_all_app_mesh_virtual_services(mesh_name: str, svc: Any) -> list[dict[str, Any]]:
    """Return the full description of every virtual service in the mesh."""
    services = svc.list_virtual_services(meshName=mesh_name).get("virtualServices") or []
    return [
        svc.describe_virtual_service(
            meshName=service.get("meshName"),
            virtualServiceName=service.get("virtualServiceName"),
        ).get("virtualService")
        for service in services
    ]


def get_all_app_mesh_paths(mesh_name: str, svc: Any) -> list[AppMeshVirtualService]:
    """Return every router-backed virtual service with the routes of its router."""
    routes_by_router: dict[str, list[AppMeshVirtualServiceRoute]] = defaultdict(list)
    services = get_all_app_mesh_virtual_services(mesh_name, svc)
    for route in get_app_mesh_route_descriptions(mesh_name, svc):
        router_name = route.get("virtualRouterName") or ""
        http_route = (route.get("spec") or {}).get("httpRoute") or {}
        prefix = (http_route.get("match") or {}).get("prefix") or ""
        targets = (http_route.get("action") or {}).get("weightedTargets") or []
        for target in targets:
            routes_by_router[router_name].append(
                AppMeshVirtualServiceRoute(
                    router=router_name,
                    path=prefix,
                    destination_node=target.get("virtualNode") or "",
                    weight=target.get("weight") or 0,
                )
            )

    result: list[AppMeshVirtualService] = []
    for service in services:
        provider = (service.get("spec") or {}).get("provider") or {}
        router = provider.get("virtualRouter")
        if router is None:
            logger.warning("union is nil or unknown type")
            continue
        router_name = router.get("virtualRouterName") or ""
        result.append(
            AppMeshVirtualService(
                virtual_service_name=service.get("virtualServiceName") or "",
                virtual_service_routes=list(routes_by_router.get(router_name, [])),
            )
        )
    return result


def get_all_unserviced_app_mesh_nodes(mesh_name: str, svc: Any) -> list[str]:
    """Return the names of nodes that no service routes traffic to."""
    services = get_all_app_mesh_paths(mesh_name, svc)
    nodes = get_all_app_mesh_nodes(mesh_name, svc)
    destinations = {
        route.destination_node
        for service in services
        for route in service.virtual_service_routes
    }
    names = [node.get("virtualNodeName") or "" for node in nodes]
    return [name for name in names if name not in destinations]


def get_app_mesh_virtual_node_backend_services(
    mesh_name: str, node_name: str, svc: Any
) -> list[str]:
    """Return the names of the virtual services a node has as backends."""
    node = svc.describe_virtual_node(meshName=mesh_name, virtualNodeName=node_name).get(
        "virtualNode"
    ) or {}
    backends: list[str] = []
    for backend in (node.get("spec") or {}).get("backends") or []:
        service = backend.get("virtualService")
        if service is None:
            logger.warning("union is nil or unknown type")
            continue
        backends.append(service.get("virtualServiceName") or "")
    return backends


def get_all_app_mesh_node_connections(mesh_name: str, svc: Any) -> list[AppMeshVirtualNode]:
    """Return every node with its backend services and the nodes serving them."""
    services_by_name: dict[str, AppMeshVirtualService] = {}
    for service in get_all_app_mesh_paths(mesh_name, svc):
        for route in service.virtual_service_routes:
            destination = route.destination_node
            backends = get_app_mesh_virtual_node_backend_services(mesh_name, destination, svc)
            if not backends:
                service.add_path(AppMeshVirtualServicePath(virtual_node=destination))
            for backend in backends:
                service.add_path(
                    AppMeshVirtualServicePath(virtual_node=destination, service_name=backend)
                )
        services_by_name[service.virtual_service_name] = service

    result: list[AppMeshVirtualNode] = []
    for node in get_all_app_mesh_nodes(mesh_name, svc):
        node_name = node.get("virtualNodeName") or ""
        connected = get_app_mesh_virtual_node_backend_services(mesh_name, node_name, svc)
        backend_nodes = [
            path.virtual_node
            for name in connected
            if name in services_by_name
            for path in services_by_name[name].virtual_service_paths
        ]
        result.append(
            AppMeshVirtualNode(
                virtual_node_name=node_name,
                backend_services=connected,
                backend_nodes=backend_nodes,
            )
        )
    return result