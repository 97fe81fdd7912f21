"""
Рендеринг конфигурационных файлов redis / sentinel / predixy
Синтаксис должен точно совпадать с тем, что парсят внешние процессы
"""

import logging
from typing import Any, List, Optional

from jinja2 import Environment, StrictUndefined, TemplateError

from ..config import NamingConfig, RedisConfig, PredixyConfig
from ..errors import TemplateRenderError
from ..models import ConfigArtifact, Credentials, TopologySpec
from .naming import get_sentinel_name, sentinel_addresses

logger = logging.getLogger(__name__)


REDIS_CONFIG_TEMPLATE = """slaveof 127.0.0.1 {{ port }}
port {{ port }}
maxmemory {{ max_memory }}
logfile /log/redis.log

timeout 0
tcp-keepalive 0

# Снапшоты выключены, при переходе в slave их включает скрипт
save ""

stop-writes-on-bgsave-error yes
rdbcompression yes
rdbchecksum yes

slave-serve-stale-data yes
slave-read-only no
repl-disable-tcp-nodelay no

# AOF выключен по умолчанию
appendonly no
appendfilename "appendonly.aof"
appendfsync everysec
no-appendfsync-on-rewrite no
aof-rewrite-incremental-fsync yes
auto-aof-rewrite-percentage 100
auto-aof-rewrite-min-size 64mb

lua-time-limit 5000
slowlog-log-slower-than 10000
slowlog-max-len 1000
notify-keyspace-events ""

hash-max-ziplist-entries 512
hash-max-ziplist-value 64
list-max-ziplist-entries 512
list-max-ziplist-value 64
set-max-intset-entries 512
zset-max-ziplist-entries 128
zset-max-ziplist-value 64
activerehashing yes

client-output-buffer-limit normal 0 0 0
client-output-buffer-limit slave 7051978kb 256mb 3600
client-output-buffer-limit pubsub 32mb 8mb 60

maxmemory-policy volatile-lru
hz 10
maxclients 4064

user {{ probe_user }} -@all +ping on >{{ probe_password }}
rename-command keys ""
rename-command flushall ""
rename-command flushdb ""
rename-command debug ""
rename-command shutdown ""
{%- for source, target in command_renames %}
rename-command "{{ source }}" "{{ target }}"
{%- endfor %}
{%- if auth_password %}
masterauth {{ auth_password }}
requirepass {{ auth_password }}
{%- endif %}
"""

SENTINEL_CONFIG_TEMPLATE = """sentinel monitor {{ group }} 127.0.0.1 {{ port }} {{ quorum }}
sentinel down-after-milliseconds {{ group }} {{ down_after }}
sentinel failover-timeout {{ group }} {{ failover_timeout }}
sentinel parallel-syncs {{ group }} {{ parallel_syncs }}
logfile /log/sentinel.log
"""

PREDIXY_CONFIG_TEMPLATE = """Name predixy
Bind 0.0.0.0:{{ port }}
WorkerThreads 12
MaxMemory 1G
ClientTimeout 0
Log {{ log_path }}/predixy.log
LogRotate 1d
LogVerbSample 0
LogDebugSample 0
LogInfoSample 10000
LogNoticeSample 0
LogWarnSample 1
LogErrorSample 1
Include {{ sentinel_file }}
Include {{ auth_file }}
"""

PREDIXY_SENTINEL_CONFIG_TEMPLATE = """SentinelServerPool {
    Databases 16
    Hash crc16
    HashTag "{}"
    Distribution modula
    MasterReadPriority 60
    StaticSlaveReadPriority 50
    DynamicSlaveReadPriority 50
    RefreshInterval 1
    ServerTimeout 1
    ServerFailureLimit 10
    ServerRetryTimeout 1
    KeepAlive 0
{%- if auth_password %}
    Password {{ auth_password }}
{%- endif %}
    Sentinels {
{%- for address in sentinels %}
        + {{ address }}
{%- endfor %}
    }
    Group {{ group }} {
    }
}
"""

PREDIXY_AUTH_CONFIG_TEMPLATE = """Authority {
    Auth {{ probe_password }} {
        Mode read
    }
    Auth {{ read_password }} {
        Mode read
    }
{%- if auth_password %}
    Auth {{ auth_password }} {
        Mode write
    }
{%- else %}
    Auth {
        Mode write
    }
{%- endif %}
    Auth {{ admin_password }} {
        Mode admin
    }
}
"""

# pre-stop: передать роль master перед остановкой, затем сохранить данные
REDIS_SHUTDOWN_SCRIPT_TEMPLATE = """master=$(redis-cli -h {{ sentinel_host }} -p {{ sentinel_port }} --csv SENTINEL get-master-addr-by-name {{ group }} | tr ',' ' ' | tr -d '"' | cut -d' ' -f1)
if [ "$master" = "$(hostname -i)" ]; then
  redis-cli -h {{ sentinel_host }} -p {{ sentinel_port }} SENTINEL failover {{ group }}
  sleep 1
fi
cmd="redis-cli -p {{ port }}"
if [ ! -z "${REDIS_PASSWORD}" ]; then
  export REDISCLI_AUTH=${REDIS_PASSWORD}
fi
save_command="${cmd} save"
eval $save_command
"""

REDIS_READINESS_SCRIPT_TEMPLATE = """cmd="redis-cli -p {{ port }}"
if [ ! -z "${REDIS_PASSWORD}" ]; then
  export REDISCLI_AUTH=${REDIS_PASSWORD}
fi

info=$(${cmd} info replication | tr -d '\\r')
case "$info" in
  *role:master*)
    exit 0
    ;;
  *role:slave*)
    echo "$info" | grep -q "master_sync_in_progress:1" && exit 1
    echo "$info" | grep -q "master_host:127.0.0.1" && exit 1
    exit 0
    ;;
esac

echo "unexpected replication role"
exit 1
"""


def get_quorum(spec: TopologySpec) -> int:
    """Кворум sentinel: всегда вычисляется из текущего числа реплик"""
    return spec.sentinel.replicas // 2 + 1


class ConfigTemplateEngine:
    """Рендерер конфигов (чистые функции от спецификации)"""

    def __init__(self):
        self.env = Environment(
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def _render(self, template_name: str, template_str: str, **context: Any) -> str:
        try:
            template = self.env.from_string(template_str)
            rendered = template.render(**context)
        except TemplateError as e:
            logger.error(f"❌ Ошибка рендеринга шаблона {template_name}: {e}")
            raise TemplateRenderError(template_name, str(e)) from e

        logger.debug(f"Отрендерен {template_name}: {len(rendered)} байт")
        return rendered

    def render_redis_config(self, spec: TopologySpec, credentials: Optional[Credentials] = None) -> str:
        """
        Генерирует redis.conf

        Args:
            spec: Спецификация RedisFailover
            credentials: Учетные данные (по умолчанию placeholders)

        Returns:
            Текст redis.conf
        """
        credentials = credentials or Credentials()
        return self._render(
            RedisConfig.CONFIG_FILE_NAME,
            REDIS_CONFIG_TEMPLATE,
            port=spec.redis.port,
            max_memory=spec.redis.max_memory,
            probe_user=RedisConfig.PROBE_USER,
            probe_password=RedisConfig.PROBE_PASSWORD,
            command_renames=[(rename.from_, rename.to) for rename in spec.redis.custom_command_renames],
            auth_password=credentials.redis_password if spec.auth.enabled else "",
        )

    def render_sentinel_config(self, spec: TopologySpec) -> str:
        """Генерирует sentinel.conf с вычисленным кворумом"""
        return self._render(
            RedisConfig.SENTINEL_CONFIG_FILE_NAME,
            SENTINEL_CONFIG_TEMPLATE,
            group=RedisConfig.MASTER_GROUP_NAME,
            port=spec.redis.port,
            quorum=get_quorum(spec),
            down_after=RedisConfig.DOWN_AFTER_MILLISECONDS,
            failover_timeout=RedisConfig.FAILOVER_TIMEOUT,
            parallel_syncs=RedisConfig.PARALLEL_SYNCS,
        )

    def render_predixy_config(self) -> str:
        """Основной predixy.conf (не зависит от спецификации)"""
        return self._render(
            PredixyConfig.CONFIG_FILE_NAME,
            PREDIXY_CONFIG_TEMPLATE,
            port=PredixyConfig.PORT,
            log_path=PredixyConfig.LOG_MOUNT_PATH,
            sentinel_file=PredixyConfig.SENTINEL_FILE_NAME,
            auth_file=PredixyConfig.AUTH_FILE_NAME,
        )

    def render_predixy_sentinel_config(
        self,
        spec: TopologySpec,
        credentials: Optional[Credentials] = None,
        sentinels: Optional[List[str]] = None
    ) -> str:
        """
        Генерирует sentinel.conf для predixy

        Группа мастера совпадает с группой в sentinel.conf, иначе predixy
        не найдет master.

        Args:
            spec: Спецификация RedisFailover
            credentials: Учетные данные
            sentinels: Явные адреса sentinel (по умолчанию DNS имена реплик)
        """
        credentials = credentials or Credentials()
        return self._render(
            f"predixy/{PredixyConfig.SENTINEL_FILE_NAME}",
            PREDIXY_SENTINEL_CONFIG_TEMPLATE,
            sentinels=sentinels if sentinels is not None else sentinel_addresses(spec),
            group=RedisConfig.MASTER_GROUP_NAME,
            auth_password=credentials.redis_password if spec.auth.enabled else "",
        )

    def render_predixy_auth_config(self, spec: TopologySpec, credentials: Optional[Credentials] = None) -> str:
        """
        Генерирует auth.conf: read / write / admin

        Пароль уровня write совпадает с паролем redis.
        """
        credentials = credentials or Credentials()
        return self._render(
            PredixyConfig.AUTH_FILE_NAME,
            PREDIXY_AUTH_CONFIG_TEMPLATE,
            probe_password=RedisConfig.PROBE_PASSWORD,
            read_password=credentials.proxy_read_password,
            admin_password=credentials.proxy_admin_password,
            auth_password=credentials.redis_password if spec.auth.enabled else "",
        )

    def render_shutdown_script(self, spec: TopologySpec) -> str:
        return self._render(
            RedisConfig.SHUTDOWN_FILE_NAME,
            REDIS_SHUTDOWN_SCRIPT_TEMPLATE,
            sentinel_host=get_sentinel_name(spec),
            sentinel_port=RedisConfig.SENTINEL_PORT,
            group=RedisConfig.MASTER_GROUP_NAME,
            port=spec.redis.port,
        )

    def render_readiness_script(self, spec: TopologySpec) -> str:
        return self._render(
            RedisConfig.READINESS_FILE_NAME,
            REDIS_READINESS_SCRIPT_TEMPLATE,
            port=spec.redis.port,
        )

    def render_all(
        self,
        spec: TopologySpec,
        credentials: Optional[Credentials] = None,
        sentinels: Optional[List[str]] = None
    ) -> List[ConfigArtifact]:
        """
        Рендерит все конфиги спецификации

        Returns:
            Список ConfigArtifact (predixy только если включен)
        """
        artifacts = [
            ConfigArtifact(NamingConfig.REDIS_ROLE_NAME, RedisConfig.CONFIG_FILE_NAME,
                           self.render_redis_config(spec, credentials)),
            ConfigArtifact(NamingConfig.REDIS_ROLE_NAME, RedisConfig.SHUTDOWN_FILE_NAME,
                           self.render_shutdown_script(spec)),
            ConfigArtifact(NamingConfig.REDIS_ROLE_NAME, RedisConfig.READINESS_FILE_NAME,
                           self.render_readiness_script(spec)),
            ConfigArtifact(NamingConfig.SENTINEL_ROLE_NAME, RedisConfig.SENTINEL_CONFIG_FILE_NAME,
                           self.render_sentinel_config(spec)),
        ]

        if spec.predixy.enabled:
            artifacts.extend([
                ConfigArtifact(NamingConfig.PREDIXY_ROLE_NAME, PredixyConfig.CONFIG_FILE_NAME,
                               self.render_predixy_config()),
                ConfigArtifact(NamingConfig.PREDIXY_ROLE_NAME, PredixyConfig.SENTINEL_FILE_NAME,
                               self.render_predixy_sentinel_config(spec, credentials, sentinels)),
                ConfigArtifact(NamingConfig.PREDIXY_ROLE_NAME, PredixyConfig.AUTH_FILE_NAME,
                               self.render_predixy_auth_config(spec, credentials)),
            ])

        return artifacts
