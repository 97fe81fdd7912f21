"""
Имена и лейблы объектов RedisFailover
Детерминированная функция от (имя ресурса, роль)
"""

from typing import Any, Dict, List

from ..config import NamingConfig, RedisConfig
from ..models import RoleIdentity, TopologySpec

ROLE_SUFFIXES = {
    NamingConfig.REDIS_ROLE_NAME: NamingConfig.REDIS_NAME,
    NamingConfig.SENTINEL_ROLE_NAME: NamingConfig.SENTINEL_NAME,
    NamingConfig.PREDIXY_ROLE_NAME: NamingConfig.PREDIXY_NAME,
}


def get_redis_name(spec: TopologySpec) -> str:
    return NamingConfig.get_name(NamingConfig.REDIS_NAME, spec.name)


def get_sentinel_name(spec: TopologySpec) -> str:
    return NamingConfig.get_name(NamingConfig.SENTINEL_NAME, spec.name)


def get_predixy_name(spec: TopologySpec) -> str:
    return NamingConfig.get_name(NamingConfig.PREDIXY_NAME, spec.name)


def generate_selector_labels(role: str, name: str) -> Dict[str, str]:
    """
    Selector-лейблы роли

    Неизменяемы после создания workload'а: сюда не попадают ни
    пользовательские лейблы, ни текущая роль master/slave.
    """
    return {
        NamingConfig.PART_OF_LABEL_KEY: NamingConfig.APP_LABEL,
        NamingConfig.COMPONENT_LABEL_KEY: role,
        NamingConfig.NAME_LABEL_KEY: name,
    }


def generate_redis_default_role_label() -> Dict[str, str]:
    """Информационный лейбл роли redis; реальную роль выставляют health checks"""
    return {NamingConfig.REDIS_ROLE_LABEL_KEY: NamingConfig.REDIS_ROLE_LABEL_SLAVE}


def role_identity(spec: TopologySpec, role: str) -> RoleIdentity:
    """
    Возвращает имя и selector-лейблы для роли

    Args:
        spec: Спецификация RedisFailover
        role: redis, sentinel или predixy

    Raises:
        ValueError: Неизвестная роль
    """
    if role not in ROLE_SUFFIXES:
        raise ValueError(f"Unknown role '{role}', expected one of: {', '.join(ROLE_SUFFIXES)}")

    return RoleIdentity(
        base_name=NamingConfig.get_name(ROLE_SUFFIXES[role], spec.name),
        role=role,
        selector_labels=generate_selector_labels(role, spec.name),
    )


def merge_labels(*label_sets: Dict[str, str]) -> Dict[str, str]:
    """Объединяет наборы лейблов, последующие наборы имеют приоритет"""
    merged: Dict[str, str] = {}
    for labels in label_sets:
        if labels:
            merged.update(labels)
    return merged


def generate_owner_references(spec: TopologySpec) -> List[Dict[str, Any]]:
    """Owner reference на родительский ресурс (каскадное удаление)"""
    return [
        {
            "apiVersion": spec.api_version,
            "kind": spec.kind,
            "name": spec.name,
            "uid": spec.metadata.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }
    ]


def sentinel_addresses(spec: TopologySpec) -> List[str]:
    """
    Стабильные адреса всех sentinel реплик через headless service

    Returns:
        ["rf-s-demo-0.rf-s-demo.default.svc.cluster.local:26379", ...]
    """
    service = get_sentinel_name(spec)
    return [
        f"{service}-{index}.{service}.{spec.namespace}.svc.{RedisConfig.CLUSTER_DOMAIN}:{RedisConfig.SENTINEL_PORT}"
        for index in range(spec.sentinel.replicas)
    ]
