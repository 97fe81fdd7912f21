"""
Стандартное окружение sidecar'ов и тома pod'ов
Базовые mounts/env объединяются с пользовательскими extra контейнерами и томами
"""

import copy
from typing import Any, Dict, List, Optional

from ..config import RedisConfig, PredixyConfig
from ..models import TopologySpec
from .naming import get_redis_name, get_sentinel_name, get_predixy_name

# Права на исполнение для скриптов из ConfigMap (0744)
EXECUTE_MODE = 0o744

REDIS_CONFIG_VOLUME = "redis-config"
REDIS_SHUTDOWN_VOLUME = "redis-shutdown-config"
REDIS_READINESS_VOLUME = "redis-readiness-config"
REDIS_STARTUP_VOLUME = "redis-startup-config"
REDIS_STORAGE_VOLUME = "redis-data"
REDIS_LOG_VOLUME = "redis-log"

SENTINEL_CONFIG_VOLUME = "sentinel-config"
SENTINEL_WRITABLE_CONFIG_VOLUME = "sentinel-config-writable"
SENTINEL_STARTUP_VOLUME = "sentinel-startup-config"
SENTINEL_LOG_VOLUME = "sentinel-log"

PREDIXY_CONFIG_VOLUME = "predixy-config"
PREDIXY_FILE_CONFIG_VOLUME = "predixy-file-config"
PREDIXY_LOG_VOLUME = "predixy-log"


# ========================================
# Environment
# ========================================

def get_redis_env(spec: TopologySpec) -> List[Dict[str, Any]]:
    """
    Стандартное окружение для доступа к локальному redis

    Пароль берется только через secretKeyRef, никогда открытым текстом.
    """
    env: List[Dict[str, Any]] = [
        {"name": "REDIS_ADDR", "value": f"redis://127.0.0.1:{spec.redis.port}"},
        {"name": "REDIS_PORT", "value": str(spec.redis.port)},
        {"name": "REDIS_USER", "value": RedisConfig.DEFAULT_USER},
    ]

    if spec.auth.enabled:
        env.append(secret_env("REDIS_PASSWORD", spec.auth.secret_path, spec.auth.secret_key))

    return env


def secret_env(name: str, secret_name: str, key: str) -> Dict[str, Any]:
    return {
        "name": name,
        "valueFrom": {
            "secretKeyRef": {
                "name": secret_name,
                "key": key,
            }
        },
    }


def merge_env(existing: Optional[List[Dict[str, Any]]], extra: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Добавляет переменные в конец списка

    Переменные, уже заданные пользователем, не перезаписываются.
    """
    merged = copy.deepcopy(existing or [])
    present = {item.get("name") for item in merged}
    for item in extra:
        if item["name"] in present:
            continue
        merged.append(copy.deepcopy(item))
        present.add(item["name"])
    return merged


def get_containers_with_redis_env(
    containers: List[Dict[str, Any]],
    env: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Копии пользовательских контейнеров со стандартным окружением redis"""
    result = []
    for container in containers:
        merged = copy.deepcopy(container)
        merged["env"] = merge_env(container.get("env"), env)
        result.append(merged)
    return result


# ========================================
# Redis volumes
# ========================================

def _config_map_volume(
    name: str,
    config_map: str,
    items: Optional[List[str]] = None,
    executable: bool = False
) -> Dict[str, Any]:
    source: Dict[str, Any] = {"name": config_map}
    if items:
        source["items"] = [{"key": item, "path": item} for item in items]
    if executable:
        source["defaultMode"] = EXECUTE_MODE
    return {"name": name, "configMap": source}


def get_log_volume(name: str, storage_path: Optional[str]) -> Dict[str, Any]:
    """
    Том для логов

    По умолчанию emptyDir: он получает fsGroup pod'а и доступен на запись
    non-root пользователю. hostPath только при явном storagePath, права
    на каталог узла обеспечивает владелец узла.
    """
    if not storage_path:
        return {"name": name, "emptyDir": {}}
    return {
        "name": name,
        "hostPath": {
            "path": storage_path,
            "type": "DirectoryOrCreate",
        },
    }


def get_redis_data_volume_name(spec: TopologySpec) -> str:
    claim = spec.redis.storage.persistent_volume_claim
    if claim is not None:
        return claim["metadata"]["name"]
    return REDIS_STORAGE_VOLUME


def get_redis_data_volume(spec: TopologySpec) -> Optional[Dict[str, Any]]:
    """
    Том данных redis

    PVC template -> том создает StatefulSet (None); явный emptyDir;
    иначе пустой emptyDir.
    """
    storage = spec.redis.storage
    if storage.persistent_volume_claim is not None:
        return None
    if storage.empty_dir is not None:
        return {"name": REDIS_STORAGE_VOLUME, "emptyDir": copy.deepcopy(storage.empty_dir)}
    return {"name": REDIS_STORAGE_VOLUME, "emptyDir": {}}


def get_redis_volume_mounts(spec: TopologySpec) -> List[Dict[str, Any]]:
    mounts = [
        {"name": REDIS_CONFIG_VOLUME, "mountPath": "/redis"},
        {"name": REDIS_SHUTDOWN_VOLUME, "mountPath": "/redis-shutdown"},
        {"name": REDIS_READINESS_VOLUME, "mountPath": "/redis-readiness"},
        {"name": get_redis_data_volume_name(spec), "mountPath": "/data"},
        {"name": REDIS_LOG_VOLUME, "mountPath": "/log"},
    ]

    if spec.redis.startup_config_map:
        mounts.append({"name": REDIS_STARTUP_VOLUME, "mountPath": "/redis-startup"})

    mounts.extend(copy.deepcopy(spec.redis.extra_volume_mounts))
    return mounts


def get_redis_volumes(spec: TopologySpec) -> List[Dict[str, Any]]:
    config_map_name = get_redis_name(spec)

    volumes = [
        _config_map_volume(REDIS_CONFIG_VOLUME, config_map_name, [RedisConfig.CONFIG_FILE_NAME]),
        _config_map_volume(REDIS_SHUTDOWN_VOLUME, config_map_name, [RedisConfig.SHUTDOWN_FILE_NAME],
                           executable=True),
        _config_map_volume(REDIS_READINESS_VOLUME, config_map_name, [RedisConfig.READINESS_FILE_NAME],
                           executable=True),
        get_log_volume(REDIS_LOG_VOLUME, spec.redis.storage_path),
    ]

    if spec.redis.startup_config_map:
        volumes.append(_config_map_volume(REDIS_STARTUP_VOLUME, spec.redis.startup_config_map, executable=True))

    volumes.extend(copy.deepcopy(spec.redis.extra_volumes))

    data_volume = get_redis_data_volume(spec)
    if data_volume is not None:
        volumes.append(data_volume)

    return volumes


# ========================================
# Sentinel volumes
# ========================================

def get_sentinel_volume_mounts(spec: TopologySpec) -> List[Dict[str, Any]]:
    mounts = [
        {"name": SENTINEL_WRITABLE_CONFIG_VOLUME, "mountPath": "/redis"},
        {"name": SENTINEL_LOG_VOLUME, "mountPath": "/log"},
    ]

    if spec.sentinel.startup_config_map:
        mounts.append({"name": SENTINEL_STARTUP_VOLUME, "mountPath": "/sentinel-startup"})

    mounts.extend(copy.deepcopy(spec.sentinel.extra_volume_mounts))
    return mounts


def get_sentinel_volumes(spec: TopologySpec) -> List[Dict[str, Any]]:
    # Sentinel переписывает свой конфиг, поэтому read-only ConfigMap
    # копируется init-контейнером в emptyDir
    volumes = [
        _config_map_volume(SENTINEL_CONFIG_VOLUME, get_sentinel_name(spec)),
        {"name": SENTINEL_WRITABLE_CONFIG_VOLUME, "emptyDir": {}},
        get_log_volume(SENTINEL_LOG_VOLUME, spec.sentinel.storage_path),
    ]

    if spec.sentinel.startup_config_map:
        volumes.append(
            _config_map_volume(SENTINEL_STARTUP_VOLUME, spec.sentinel.startup_config_map, executable=True)
        )

    volumes.extend(copy.deepcopy(spec.sentinel.extra_volumes))
    return volumes


# ========================================
# Predixy volumes
# ========================================

def get_predixy_volumes(spec: TopologySpec) -> List[Dict[str, Any]]:
    return [
        _config_map_volume(PREDIXY_FILE_CONFIG_VOLUME, get_predixy_name(spec)),
        {"name": PREDIXY_CONFIG_VOLUME, "emptyDir": {}},
        get_log_volume(PREDIXY_LOG_VOLUME, spec.predixy.storage_path),
    ]


def get_predixy_volume_mounts() -> List[Dict[str, Any]]:
    return [
        {"name": PREDIXY_CONFIG_VOLUME, "mountPath": PredixyConfig.MOUNT_PATH},
        {"name": PREDIXY_LOG_VOLUME, "mountPath": PredixyConfig.LOG_MOUNT_PATH},
    ]
