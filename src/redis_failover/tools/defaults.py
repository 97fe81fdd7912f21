"""
Значения по умолчанию для необязательных полей спецификации

Правило одно для всех полей: если пользователь задал структуру, она
используется целиком (без deep-merge), иначе подставляется фиксированный
default. Каждый вызов возвращает новую копию.
"""

import copy
from typing import Any, Dict, List, Optional

from ..config import NamingConfig, RedisConfig, ExporterConfig, PredixyConfig
from ..models import TopologySpec

DEFAULT_USER_AND_GROUP = 1000
DEFAULT_DNS_POLICY = "ClusterFirst"
DEFAULT_PULL_POLICY = "Always"

EXPORTER_DEFAULT_RESOURCES: Dict[str, Any] = {
    "limits": {
        "cpu": ExporterConfig.LIMIT_CPU,
        "memory": ExporterConfig.LIMIT_MEMORY,
    },
    "requests": {
        "cpu": ExporterConfig.REQUEST_CPU,
        "memory": ExporterConfig.REQUEST_MEMORY,
    },
}

CONFIG_COPY_RESOURCES: Dict[str, Any] = {
    "limits": {"cpu": "10m", "memory": "32Mi"},
    "requests": {"cpu": "10m", "memory": "32Mi"},
}


def _or_default(value: Optional[Any], default: Any) -> Any:
    return copy.deepcopy(value if value is not None else default)


def get_affinity(affinity: Optional[Dict[str, Any]], labels: Dict[str, str]) -> Dict[str, Any]:
    """
    Affinity pod'а

    По умолчанию SOFT anti-affinity: реплики роли разносятся по разным
    узлам, но планирование не блокируется при нехватке ресурсов.
    """
    if affinity is not None:
        return copy.deepcopy(affinity)

    return {
        "podAntiAffinity": {
            "preferredDuringSchedulingIgnoredDuringExecution": [
                {
                    "weight": 100,
                    "podAffinityTerm": {
                        "topologyKey": NamingConfig.HOSTNAME_TOPOLOGY_KEY,
                        "labelSelector": {
                            "matchLabels": dict(labels),
                        },
                    },
                }
            ]
        }
    }


def get_security_context(security_context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Pod security context: non-root пользователь и группа 1000"""
    return _or_default(security_context, {
        "runAsUser": DEFAULT_USER_AND_GROUP,
        "runAsGroup": DEFAULT_USER_AND_GROUP,
        "runAsNonRoot": True,
        "fsGroup": DEFAULT_USER_AND_GROUP,
    })


def get_container_security_context(security_context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Container security context: все capabilities сброшены, read-only rootfs"""
    return _or_default(security_context, {
        "capabilities": {
            "add": [],
            "drop": ["ALL"],
        },
        "privileged": False,
        "runAsNonRoot": True,
        "readOnlyRootFilesystem": True,
        "allowPrivilegeEscalation": False,
    })


def get_dns_policy(dns_policy: Optional[str]) -> str:
    return dns_policy or DEFAULT_DNS_POLICY


def pull_policy(policy: Optional[str]) -> str:
    return policy or DEFAULT_PULL_POLICY


def get_termination_grace_period_seconds(seconds: Optional[int]) -> int:
    if seconds is not None and seconds > 0:
        return seconds
    return RedisConfig.DEFAULT_TERMINATION_GRACE_PERIOD


def get_exporter_resources(resources: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return _or_default(resources, EXPORTER_DEFAULT_RESOURCES)


def get_config_copy_resources() -> Dict[str, Any]:
    return copy.deepcopy(CONFIG_COPY_RESOURCES)


def get_redis_command(spec: TopologySpec) -> List[str]:
    if spec.redis.command:
        return list(spec.redis.command)
    return [
        "/bin/sh",
        "-c",
        f"sleep 15 && redis-server /redis/{RedisConfig.CONFIG_FILE_NAME}",
    ]


def get_sentinel_command(spec: TopologySpec) -> List[str]:
    if spec.sentinel.command:
        return list(spec.sentinel.command)
    return [
        "redis-server",
        f"/redis/{RedisConfig.SENTINEL_CONFIG_FILE_NAME}",
        "--sentinel",
    ]


def get_predixy_command() -> List[str]:
    return [
        PredixyConfig.BINARY_PATH,
        f"{PredixyConfig.MOUNT_PATH}/{PredixyConfig.CONFIG_FILE_NAME}",
    ]
