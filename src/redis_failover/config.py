"""
Конфигурация Redis Failover Generator
Централизованное управление константами и настройками
"""

import os


# ========================================
# Naming Configuration
# ========================================

class NamingConfig:
    """Имена ролей, префиксы и ключи лейблов"""

    # Общий префикс всех объектов: rf-<роль>-<имя>
    BASE_NAME = "rf"

    # Суффиксы ролей
    REDIS_NAME = "r"
    SENTINEL_NAME = "s"
    PREDIXY_NAME = "p"

    # Значения лейбла component
    REDIS_ROLE_NAME = "redis"
    SENTINEL_ROLE_NAME = "sentinel"
    PREDIXY_ROLE_NAME = "predixy"

    # Фиксированная идентичность приложения
    APP_LABEL = "redis-failover"

    # Ключи selector-лейблов
    PART_OF_LABEL_KEY = "app.kubernetes.io/part-of"
    COMPONENT_LABEL_KEY = "app.kubernetes.io/component"
    NAME_LABEL_KEY = "app.kubernetes.io/name"

    # Информационный лейбл текущей роли (НЕ входит в selector)
    REDIS_ROLE_LABEL_KEY = "redisfailovers-role"
    REDIS_ROLE_LABEL_SLAVE = "slave"

    HOSTNAME_TOPOLOGY_KEY = "kubernetes.io/hostname"

    # Родительский ресурс для owner references
    OWNER_API_VERSION = "databases.spotahome.com/v1"
    OWNER_KIND = "RedisFailover"

    @staticmethod
    def get_name(role_suffix: str, name: str) -> str:
        """
        Генерирует каноническое имя объекта

        Args:
            role_suffix: Суффикс роли (r, s, p)
            name: Имя RedisFailover

        Returns:
            Имя в формате "rf-r-demo"
        """
        return f"{NamingConfig.BASE_NAME}-{role_suffix}-{name}"


# ========================================
# Redis / Sentinel Configuration
# ========================================

class RedisConfig:
    """Параметры data-нод и sentinel"""

    DEFAULT_IMAGE = os.getenv("REDIS_IMAGE", "redis:6.2.6-alpine")
    DEFAULT_PORT = 6379
    DEFAULT_MAX_MEMORY = "0"

    SENTINEL_PORT = 26379

    CONFIG_FILE_NAME = "redis.conf"
    SENTINEL_CONFIG_FILE_NAME = "sentinel.conf"
    SHUTDOWN_FILE_NAME = "shutdown.sh"
    READINESS_FILE_NAME = "ready.sh"
    STARTUP_FILE_NAME = "startup.sh"

    # Имя логической группы мастера, общее для sentinel и predixy
    MASTER_GROUP_NAME = "master0"

    # Параметры мониторинга sentinel
    DOWN_AFTER_MILLISECONDS = 5000
    FAILOVER_TIMEOUT = 60000
    PARALLEL_SYNCS = 2

    # Пароль для приватного пользователя liveness проб (только +ping)
    PROBE_USER = "pinger"
    PROBE_PASSWORD = "pingpass"

    DEFAULT_USER = "default"
    GRACE_TIME = 30
    DEFAULT_TERMINATION_GRACE_PERIOD = 30

    CLUSTER_DOMAIN = os.getenv("CLUSTER_DOMAIN", "cluster.local")


# ========================================
# Exporter Configuration
# ========================================

class ExporterConfig:
    """Метрик-экспортеры (sidecar контейнеры)"""

    REDIS_PORT = 9121
    SENTINEL_PORT = 9355
    PREDIXY_PORT = 9617
    PORT_NAME = "http-metrics"

    REDIS_CONTAINER_NAME = "redis-exporter"
    SENTINEL_CONTAINER_NAME = "sentinel-exporter"
    PREDIXY_CONTAINER_NAME = "predixy-exporter"

    DEFAULT_IMAGE = os.getenv("EXPORTER_IMAGE", "quay.io/oliver006/redis_exporter:v1.43.0")
    DEFAULT_PREDIXY_IMAGE = os.getenv("PREDIXY_EXPORTER_IMAGE", "haandol/predixy_exporter:latest")

    REQUEST_CPU = "25m"
    LIMIT_CPU = "50m"
    REQUEST_MEMORY = "50Mi"
    LIMIT_MEMORY = "100Mi"

    # Аннотации для prometheus на сервисах
    SERVICE_ANNOTATIONS = {
        "prometheus.io/scrape": "true",
        "prometheus.io/port": "http",
        "prometheus.io/path": "/metrics",
    }


# ========================================
# Predixy Configuration
# ========================================

class PredixyConfig:
    """Прокси-слой Predixy"""

    DEFAULT_IMAGE = os.getenv("PREDIXY_IMAGE", "haandol/predixy:latest")
    PORT = 12120
    DEFAULT_REPLICAS = 2

    CONFIG_FILE_NAME = "predixy.conf"
    SENTINEL_FILE_NAME = "sentinel.conf"
    AUTH_FILE_NAME = "auth.conf"

    FILE_MOUNT_PATH = "/tmp"
    MOUNT_PATH = "/home/predixy/conf"
    LOG_MOUNT_PATH = "/home/predixy/logs"
    BINARY_PATH = "/home/predixy/bin/predixy"

    # maxSurge / maxUnavailable
    ROLLING_UPDATE_RATE = "25%"
    PRE_STOP_SLEEP = 30


# ========================================
# Secrets Configuration
# ========================================

class SecretsConfig:
    """Конфигурация placeholders для секретов"""

    PLACEHOLDER_PREFIX = "__PLACEHOLDER_"
    PLACEHOLDER_SUFFIX = "__"

    # Ключ в Secret, на который ссылается auth.secretPath
    DEFAULT_SECRET_KEY = "password"

    @staticmethod
    def get_placeholder(name: str) -> str:
        """
        Генерирует placeholder для секретного значения

        Args:
            name: Имя переменной (REDIS_PASSWORD, PROXY_ADMIN_PASSWORD, etc.)

        Returns:
            Placeholder в формате "__PLACEHOLDER_REDIS_PASSWORD__"
        """
        return f"{SecretsConfig.PLACEHOLDER_PREFIX}{name.upper()}{SecretsConfig.PLACEHOLDER_SUFFIX}"

    @staticmethod
    def is_placeholder(value: str) -> bool:
        return value.startswith(SecretsConfig.PLACEHOLDER_PREFIX) and value.endswith(SecretsConfig.PLACEHOLDER_SUFFIX)


# ========================================
# Output Configuration
# ========================================

class OutputConfig:
    """Конфигурация для выходных файлов"""

    # Директория для сохранения манифестов
    OUTPUT_DIR = os.getenv("OUTPUT_DIR", "./output")

    # Кодировка файлов
    FILE_ENCODING = "utf-8"

    # Валидировать YAML перед сохранением
    VALIDATE_YAML = os.getenv("VALIDATE_YAML", "true").lower() == "true"


# ========================================
# Экспорт всех конфигов
# ========================================

__all__ = [
    "NamingConfig",
    "RedisConfig",
    "ExporterConfig",
    "PredixyConfig",
    "SecretsConfig",
    "OutputConfig",
]
