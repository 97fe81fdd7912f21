"""
Модель данных RedisFailover
Входная спецификация (pydantic) и выходные структуры генератора
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .config import NamingConfig, RedisConfig, ExporterConfig, PredixyConfig, SecretsConfig
from .errors import SpecValidationError
from .utils.validation import validate_k8s_resource_name, validate_k8s_namespace

logger = logging.getLogger(__name__)


class _LiteralDumper(yaml.SafeDumper):
    """SafeDumper, который пишет многострочные конфиги блоком |"""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_LiteralDumper.add_representer(str, _represent_str)

# Самый длинный префикс среди сгенерированных имен ("rf-r-")
NAME_PREFIX_LENGTH = len(NamingConfig.get_name(NamingConfig.REDIS_NAME, ""))
# Имя StatefulSet + "-<hash>" попадает в лейбл controller-revision-hash (63),
# поэтому сам StatefulSet ограничен 52 символами. Pod'ы и DNS имена
# sentinel ("rf-s-<name>-<i>") при этом укладываются в DNS label.
MAX_STATEFULSET_NAME_LENGTH = 52
MAX_SPEC_NAME_LENGTH = MAX_STATEFULSET_NAME_LENGTH - NAME_PREFIX_LENGTH


class SpecModel(BaseModel):
    """Базовая модель: принимает и camelCase ключи ресурса, и snake_case"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ========================================
# Входная спецификация
# ========================================

class ObjectIdentity(SpecModel):
    """Идентичность родительского ресурса"""

    name: str
    namespace: str = "default"
    uid: str = ""
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        validate_k8s_resource_name(value, "RedisFailover")
        if len(value) > MAX_SPEC_NAME_LENGTH:
            raise ValueError(
                f"RedisFailover name too long: {len(value)} chars (max {MAX_SPEC_NAME_LENGTH}), "
                f"generated StatefulSet names must fit {MAX_STATEFULSET_NAME_LENGTH} chars"
            )
        return value

    @field_validator("namespace")
    @classmethod
    def _validate_namespace(cls, value: str) -> str:
        return validate_k8s_namespace(value)


class ExporterSpec(SpecModel):
    """Sidecar метрик-экспортер"""

    enabled: bool = False
    image: str = ExporterConfig.DEFAULT_IMAGE
    image_pull_policy: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    env: List[Dict[str, Any]] = Field(default_factory=list)
    resources: Optional[Dict[str, Any]] = None
    container_security_context: Optional[Dict[str, Any]] = None


class CommandRename(SpecModel):
    """Переименование команды redis (rename-command "from" "to")"""

    from_: str = Field(alias="from")
    # Пустое значение отключает команду
    to: str

    @field_validator("from_", "to")
    @classmethod
    def _no_quotes_or_whitespace(cls, value: str) -> str:
        if any(ch.isspace() or ch in "\"'\\" for ch in value):
            raise ValueError("command rename must not contain whitespace, quotes or backslashes")
        return value

    @field_validator("from_")
    @classmethod
    def _source_required(cls, value: str) -> str:
        if not value:
            raise ValueError("command rename 'from' cannot be empty")
        return value


class StorageSpec(SpecModel):
    """Хранилище data-нод: ровно один из PVC template / emptyDir / emptyDir по умолчанию"""

    keep_after_deletion: bool = False
    empty_dir: Optional[Dict[str, Any]] = None
    persistent_volume_claim: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _check_storage_mode(self) -> "StorageSpec":
        if self.empty_dir is not None and self.persistent_volume_claim is not None:
            raise ValueError("storage: emptyDir and persistentVolumeClaim are mutually exclusive")

        if self.persistent_volume_claim is not None:
            metadata = self.persistent_volume_claim.get("metadata") or {}
            if not isinstance(metadata, dict) or not metadata.get("name"):
                raise ValueError("storage.persistentVolumeClaim.metadata.name is required")
            validate_k8s_resource_name(metadata["name"], "persistentVolumeClaim")
            if not isinstance(self.persistent_volume_claim.get("spec"), dict):
                raise ValueError("storage.persistentVolumeClaim.spec must be an object")
        return self


class RoleSpec(SpecModel):
    """Общие параметры pod'ов для ролей redis и sentinel"""

    replicas: int = Field(default=3, gt=0)
    image: str = RedisConfig.DEFAULT_IMAGE
    image_pull_policy: Optional[str] = None
    resources: Dict[str, Any] = Field(default_factory=dict)
    command: List[str] = Field(default_factory=list)

    affinity: Optional[Dict[str, Any]] = None
    security_context: Optional[Dict[str, Any]] = None
    container_security_context: Optional[Dict[str, Any]] = None
    tolerations: List[Dict[str, Any]] = Field(default_factory=list)
    topology_spread_constraints: List[Dict[str, Any]] = Field(default_factory=list)
    node_selector: Dict[str, str] = Field(default_factory=dict)
    host_network: bool = False
    dns_policy: Optional[str] = None
    image_pull_secrets: List[Dict[str, Any]] = Field(default_factory=list)
    priority_class_name: Optional[str] = None
    service_account_name: Optional[str] = None
    pod_annotations: Dict[str, str] = Field(default_factory=dict)
    service_annotations: Dict[str, str] = Field(default_factory=dict)
    termination_grace_period_seconds: Optional[int] = Field(default=None, gt=0)

    exporter: ExporterSpec = Field(default_factory=ExporterSpec)
    init_containers: List[Dict[str, Any]] = Field(default_factory=list)
    extra_containers: List[Dict[str, Any]] = Field(default_factory=list)
    extra_volumes: List[Dict[str, Any]] = Field(default_factory=list)
    extra_volume_mounts: List[Dict[str, Any]] = Field(default_factory=list)

    # ConfigMap со startup.sh (создается пользователем)
    startup_config_map: Optional[str] = None
    # Hostpath для логов
    storage_path: Optional[str] = None

    @field_validator("init_containers", "extra_containers")
    @classmethod
    def _validate_containers(cls, containers: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for container in containers:
            if not container.get("name"):
                raise ValueError("every extra/init container must have a name")
        return containers

    @field_validator("extra_volumes", "extra_volume_mounts")
    @classmethod
    def _validate_named(cls, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for item in items:
            if not item.get("name"):
                raise ValueError("every extra volume / volume mount must have a name")
        return items


class RedisSpec(RoleSpec):
    """Data-ноды"""

    port: int = Field(default=RedisConfig.DEFAULT_PORT, gt=0, lt=65536)
    max_memory: str = RedisConfig.DEFAULT_MAX_MEMORY
    storage: StorageSpec = Field(default_factory=StorageSpec)
    custom_command_renames: List[CommandRename] = Field(default_factory=list)


class ConfigCopySpec(SpecModel):
    """Init-контейнер копирования sentinel.conf"""

    container_security_context: Optional[Dict[str, Any]] = None


class SentinelSpec(RoleSpec):
    """Quorum-мониторы"""

    config_copy: ConfigCopySpec = Field(default_factory=ConfigCopySpec)


class PredixySpec(SpecModel):
    """Опциональный прокси-слой"""

    enabled: bool = False
    replicas: int = Field(default=PredixyConfig.DEFAULT_REPLICAS, gt=0)
    image: str = PredixyConfig.DEFAULT_IMAGE
    image_pull_policy: Optional[str] = None
    resources: Dict[str, Any] = Field(default_factory=dict)
    node_selector: Dict[str, str] = Field(default_factory=dict)
    image_pull_secrets: List[Dict[str, Any]] = Field(default_factory=list)
    pod_annotations: Dict[str, str] = Field(default_factory=dict)
    container_security_context: Optional[Dict[str, Any]] = None
    storage_path: Optional[str] = None
    exporter: ExporterSpec = Field(
        default_factory=lambda: ExporterSpec(image=ExporterConfig.DEFAULT_PREDIXY_IMAGE)
    )


class AuthSpec(SpecModel):
    """Ссылка на Secret с паролем redis"""

    secret_path: Optional[str] = None
    secret_key: str = SecretsConfig.DEFAULT_SECRET_KEY

    @property
    def enabled(self) -> bool:
        return bool(self.secret_path)


class TopologySpec(SpecModel):
    """
    Полная спецификация RedisFailover

    Пример:
        spec = TopologySpec.from_dict({
            "metadata": {"name": "demo", "namespace": "cache"},
            "redis": {"replicas": 3},
            "sentinel": {"replicas": 3},
            "predixy": {"enabled": True},
            "auth": {"secretPath": "demo-auth"},
        })
    """

    api_version: str = NamingConfig.OWNER_API_VERSION
    kind: str = NamingConfig.OWNER_KIND
    metadata: ObjectIdentity
    redis: RedisSpec = Field(default_factory=RedisSpec)
    sentinel: SentinelSpec = Field(default_factory=SentinelSpec)
    predixy: PredixySpec = Field(default_factory=PredixySpec)
    auth: AuthSpec = Field(default_factory=AuthSpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopologySpec":
        """
        Валидирует словарь спецификации

        Raises:
            SpecValidationError: Если спецификация невалидна
        """
        if not isinstance(data, dict):
            raise SpecValidationError(f"RedisFailover spec must be a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.error(f"Невалидная спецификация RedisFailover: {e.error_count()} ошибок")
            raise SpecValidationError(f"Invalid RedisFailover spec: {e}") from e

    @classmethod
    def from_manifest(cls, manifest: Dict[str, Any]) -> "TopologySpec":
        """
        Принимает ресурс целиком (apiVersion/kind/metadata/spec)

        Args:
            manifest: Kubernetes ресурс RedisFailover

        Returns:
            TopologySpec
        """
        if not isinstance(manifest, dict):
            raise SpecValidationError("RedisFailover manifest must be a mapping")

        data: Dict[str, Any] = dict(manifest.get("spec") or {})
        data["metadata"] = manifest.get("metadata") or {}
        if "apiVersion" in manifest:
            data["apiVersion"] = manifest["apiVersion"]
        if "kind" in manifest:
            data["kind"] = manifest["kind"]

        # Поля, которые оператор не использует
        data["metadata"] = {
            key: value for key, value in data["metadata"].items()
            if key in ("name", "namespace", "uid", "labels", "annotations")
        }
        return cls.from_dict(data)

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "TopologySpec":
        """Парсит YAML ресурса RedisFailover"""
        try:
            manifest = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise SpecValidationError(f"Invalid RedisFailover YAML: {e}") from e
        return cls.from_manifest(manifest)


class Credentials(SpecModel):
    """
    Учетные данные для рендеринга конфигов

    По умолчанию содержат только placeholders: генератор никогда не читает
    Secret сам. Реальные значения может передать внешний reconciler.
    """

    redis_password: str = SecretsConfig.get_placeholder("REDIS_PASSWORD")
    proxy_read_password: str = SecretsConfig.get_placeholder("PROXY_READ_PASSWORD")
    proxy_admin_password: str = SecretsConfig.get_placeholder("PROXY_ADMIN_PASSWORD")

    @field_validator("redis_password", "proxy_read_password", "proxy_admin_password")
    @classmethod
    def _no_whitespace(cls, value: str) -> str:
        if not value or any(ch.isspace() for ch in value):
            raise ValueError("credentials must be non-empty and must not contain whitespace")
        return value


# ========================================
# Выходные структуры
# ========================================

@dataclass(frozen=True)
class RoleIdentity:
    """Имя и selector-лейблы роли"""

    base_name: str
    role: str
    selector_labels: Dict[str, str]


@dataclass(frozen=True)
class ConfigArtifact:
    """Отрендеренный конфигурационный файл"""

    role: str
    filename: str
    rendered_text: str


@dataclass
class ResourceGraph:
    """Полный набор объектов одного RedisFailover"""

    config_maps: List[Dict[str, Any]] = field(default_factory=list)
    services: List[Dict[str, Any]] = field(default_factory=list)
    pod_disruption_budgets: List[Dict[str, Any]] = field(default_factory=list)
    stateful_sets: List[Dict[str, Any]] = field(default_factory=list)
    deployments: List[Dict[str, Any]] = field(default_factory=list)

    def objects(self) -> List[Dict[str, Any]]:
        """
        Все объекты в порядке применения

        ConfigMap'ы идут первыми: workload'ы монтируют их.
        """
        return [
            *self.config_maps,
            *self.services,
            *self.pod_disruption_budgets,
            *self.stateful_sets,
            *self.deployments,
        ]

    def find(self, kind: str, name: str) -> Optional[Dict[str, Any]]:
        for obj in self.objects():
            if obj["kind"] == kind and obj["metadata"]["name"] == name:
                return obj
        return None

    def to_manifests(self) -> Dict[str, str]:
        """
        Рендерит граф в YAML файлы

        Returns:
            Dict с именами файлов и их содержимым (multi-document YAML)
        """
        groups = [
            ("configmap.yaml", self.config_maps),
            ("service.yaml", self.services),
            ("pdb.yaml", self.pod_disruption_budgets),
            ("statefulset.yaml", self.stateful_sets),
            ("deployment.yaml", self.deployments),
        ]

        manifests = {}
        for filename, objects in groups:
            if not objects:
                continue
            manifests[filename] = yaml.dump_all(
                objects, Dumper=_LiteralDumper, sort_keys=False, default_flow_style=False
            ).strip()
        return manifests
