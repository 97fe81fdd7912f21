"""
Генератор объектов RedisFailover
Собирает StatefulSet'ы redis/sentinel, опциональный Deployment predixy,
Service'ы, ConfigMap'ы и PodDisruptionBudget'ы
"""

import copy
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Union

from ..config import NamingConfig, RedisConfig, ExporterConfig, PredixyConfig
from ..errors import SpecValidationError
from ..models import Credentials, ResourceGraph, RoleSpec, TopologySpec
from .config_templates import ConfigTemplateEngine, get_quorum
from .defaults import (
    get_affinity,
    get_config_copy_resources,
    get_container_security_context,
    get_dns_policy,
    get_exporter_resources,
    get_predixy_command,
    get_redis_command,
    get_security_context,
    get_sentinel_command,
    get_termination_grace_period_seconds,
    pull_policy,
)
from .env_merger import (
    PREDIXY_CONFIG_VOLUME,
    PREDIXY_FILE_CONFIG_VOLUME,
    SENTINEL_CONFIG_VOLUME,
    SENTINEL_WRITABLE_CONFIG_VOLUME,
    get_containers_with_redis_env,
    get_predixy_volume_mounts,
    get_predixy_volumes,
    get_redis_env,
    get_redis_volume_mounts,
    get_redis_volumes,
    get_sentinel_volume_mounts,
    get_sentinel_volumes,
    merge_env,
    secret_env,
)
from .naming import (
    generate_owner_references,
    generate_redis_default_role_label,
    merge_labels,
    role_identity,
)

logger = logging.getLogger(__name__)

REDIS_ROLE = NamingConfig.REDIS_ROLE_NAME
SENTINEL_ROLE = NamingConfig.SENTINEL_ROLE_NAME
PREDIXY_ROLE = NamingConfig.PREDIXY_ROLE_NAME


def get_min_available(replicas: int) -> int:
    """
    minAvailable для PodDisruptionBudget

    Большинство реплик (как кворум), но не больше replicas - 1, чтобы
    drain узла оставался возможным.
    """
    if replicas <= 1:
        return 0
    return min(replicas // 2 + 1, replicas - 1)


def _exec_probe(
    command: List[str],
    failure_threshold: Optional[int] = None,
    period_seconds: Optional[int] = None
) -> Dict[str, Any]:
    probe: Dict[str, Any] = {
        "initialDelaySeconds": RedisConfig.GRACE_TIME,
        "timeoutSeconds": 5,
    }
    if failure_threshold is not None:
        probe["failureThreshold"] = failure_threshold
    if period_seconds is not None:
        probe["periodSeconds"] = period_seconds
    probe["exec"] = {"command": command}
    return probe


def _metadata(
    name: str,
    namespace: str,
    labels: Dict[str, str],
    owner_refs: List[Dict[str, Any]],
    annotations: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "labels": dict(labels),
    }
    if annotations:
        metadata["annotations"] = dict(annotations)
    metadata["ownerReferences"] = copy.deepcopy(owner_refs)
    return metadata


def _duplicates(names: List[str]) -> List[str]:
    return sorted(name for name, count in Counter(names).items() if count > 1)


class FailoverGenerator:
    """Генератор полного набора объектов RedisFailover"""

    def __init__(self):
        self.templates = ConfigTemplateEngine()

    # ========================================
    # Entry point
    # ========================================

    def generate(
        self,
        spec: Union[TopologySpec, Dict[str, Any]],
        credentials: Optional[Credentials] = None,
        sentinels: Optional[List[str]] = None
    ) -> ResourceGraph:
        """
        Генерирует все объекты RedisFailover

        Args:
            spec: Спецификация (TopologySpec или словарь)
            credentials: Учетные данные для конфигов (по умолчанию placeholders)
            sentinels: Явные адреса sentinel для predixy

        Returns:
            ResourceGraph

        Raises:
            SpecValidationError: Невалидная спецификация, ни один объект не создается
            TemplateRenderError: Дефект встроенного шаблона
        """
        if not isinstance(spec, TopologySpec):
            spec = TopologySpec.from_dict(spec)
        self.validate(spec)

        labels = dict(spec.metadata.labels)
        owner_refs = generate_owner_references(spec)

        graph = ResourceGraph()

        # Каждый tier собирается целиком до добавления в граф
        redis_tier = self._generate_redis_tier(spec, labels, owner_refs, credentials)
        sentinel_tier = self._generate_sentinel_tier(spec, labels, owner_refs)
        predixy_tier = (
            self._generate_predixy_tier(spec, labels, owner_refs, credentials, sentinels)
            if spec.predixy.enabled else None
        )

        for tier in (redis_tier, sentinel_tier, predixy_tier):
            if tier is None:
                continue
            graph.config_maps.append(tier["config_map"])
            graph.services.append(tier["service"])
            if "pdb" in tier:
                graph.pod_disruption_budgets.append(tier["pdb"])
            if "stateful_set" in tier:
                graph.stateful_sets.append(tier["stateful_set"])
            if "deployment" in tier:
                graph.deployments.append(tier["deployment"])

        logger.info(
            f"✅ RedisFailover {spec.namespace}/{spec.name}: сгенерировано {len(graph.objects())} объектов"
        )
        return graph

    def validate(self, spec: TopologySpec) -> None:
        """
        Проверки, которые нельзя выразить в модели спецификации

        Raises:
            SpecValidationError: Нет uid, конфликтующие тома или контейнеры
        """
        errors = []

        # Owner reference без uid API server отклоняет
        if not spec.metadata.uid:
            errors.append("metadata.uid is required to build owner references")

        redis_volumes = [volume["name"] for volume in get_redis_volumes(spec)]
        claim = spec.redis.storage.persistent_volume_claim
        if claim is not None:
            redis_volumes.append(claim["metadata"]["name"])
        errors.extend(self._check_role_volumes("redis", redis_volumes, spec.redis))
        errors.extend(self._check_role_containers(
            "redis", spec.redis, ["redis", ExporterConfig.REDIS_CONTAINER_NAME]
        ))

        sentinel_volumes = [volume["name"] for volume in get_sentinel_volumes(spec)]
        errors.extend(self._check_role_volumes("sentinel", sentinel_volumes, spec.sentinel))
        errors.extend(self._check_role_containers(
            "sentinel", spec.sentinel,
            ["sentinel", "sentinel-config-copy", ExporterConfig.SENTINEL_CONTAINER_NAME]
        ))

        if errors:
            for error in errors:
                logger.error(f"❌ {spec.namespace}/{spec.name}: {error}")
            raise SpecValidationError("; ".join(errors))

    @staticmethod
    def _check_role_volumes(role: str, volume_names: List[str], role_spec: RoleSpec) -> List[str]:
        errors = []
        duplicated = _duplicates(volume_names)
        if duplicated:
            errors.append(f"{role}: duplicated volume names: {', '.join(duplicated)}")

        known = set(volume_names)
        for mount in role_spec.extra_volume_mounts:
            if mount["name"] not in known:
                errors.append(f"{role}: extraVolumeMount '{mount['name']}' references an unknown volume")
        return errors

    @staticmethod
    def _check_role_containers(role: str, role_spec: RoleSpec, builtin: List[str]) -> List[str]:
        names = list(builtin)
        names.extend(container["name"] for container in role_spec.init_containers)
        names.extend(container["name"] for container in role_spec.extra_containers)
        duplicated = _duplicates(names)
        if duplicated:
            return [f"{role}: duplicated container names: {', '.join(duplicated)}"]
        return []

    # ========================================
    # Tiers
    # ========================================

    def _generate_redis_tier(self, spec, labels, owner_refs, credentials) -> Dict[str, Any]:
        stateful_set = self.generate_redis_stateful_set(spec, labels, owner_refs)
        return {
            "config_map": self.generate_redis_config_map(spec, labels, owner_refs, credentials),
            "service": self.generate_redis_service(spec, labels, owner_refs),
            "pdb": self.generate_role_pod_disruption_budget(spec, REDIS_ROLE, spec.redis.replicas, labels, owner_refs),
            "stateful_set": stateful_set,
        }

    def _generate_sentinel_tier(self, spec, labels, owner_refs) -> Dict[str, Any]:
        return {
            "config_map": self.generate_sentinel_config_map(spec, labels, owner_refs),
            "service": self.generate_sentinel_service(spec, labels, owner_refs),
            "pdb": self.generate_role_pod_disruption_budget(
                spec, SENTINEL_ROLE, spec.sentinel.replicas, labels, owner_refs
            ),
            "stateful_set": self.generate_sentinel_stateful_set(spec, labels, owner_refs),
        }

    def _generate_predixy_tier(self, spec, labels, owner_refs, credentials, sentinels) -> Dict[str, Any]:
        return {
            "config_map": self.generate_predixy_config_map(spec, labels, owner_refs, credentials, sentinels),
            "service": self.generate_predixy_service(spec, labels, owner_refs),
            "deployment": self.generate_predixy_deployment(spec, labels, owner_refs),
        }

    # ========================================
    # ConfigMaps
    # ========================================

    def generate_redis_config_map(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]],
        credentials: Optional[Credentials] = None
    ) -> Dict[str, Any]:
        """ConfigMap data-нод: redis.conf + скрипты shutdown/readiness"""
        identity = role_identity(spec, REDIS_ROLE)
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": _metadata(identity.base_name, spec.namespace,
                                  merge_labels(labels, identity.selector_labels), owner_refs),
            "data": {
                RedisConfig.CONFIG_FILE_NAME: self.templates.render_redis_config(spec, credentials),
                RedisConfig.SHUTDOWN_FILE_NAME: self.templates.render_shutdown_script(spec),
                RedisConfig.READINESS_FILE_NAME: self.templates.render_readiness_script(spec),
            },
        }

    def generate_sentinel_config_map(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        identity = role_identity(spec, SENTINEL_ROLE)
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": _metadata(identity.base_name, spec.namespace,
                                  merge_labels(labels, identity.selector_labels), owner_refs),
            "data": {
                RedisConfig.SENTINEL_CONFIG_FILE_NAME: self.templates.render_sentinel_config(spec),
            },
        }

    def generate_predixy_config_map(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]],
        credentials: Optional[Credentials] = None,
        sentinels: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        identity = role_identity(spec, PREDIXY_ROLE)
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": _metadata(identity.base_name, spec.namespace,
                                  merge_labels(labels, identity.selector_labels), owner_refs),
            "data": {
                PredixyConfig.CONFIG_FILE_NAME: self.templates.render_predixy_config(),
                PredixyConfig.SENTINEL_FILE_NAME: self.templates.render_predixy_sentinel_config(
                    spec, credentials, sentinels
                ),
                PredixyConfig.AUTH_FILE_NAME: self.templates.render_predixy_auth_config(spec, credentials),
            },
        }

    # ========================================
    # Services
    # ========================================

    def _service(
        self,
        spec: TopologySpec,
        role: str,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]],
        ports: List[Dict[str, Any]],
        service_annotations: Dict[str, str],
        headless: bool
    ) -> Dict[str, Any]:
        identity = role_identity(spec, role)
        annotations = merge_labels(ExporterConfig.SERVICE_ANNOTATIONS, service_annotations)

        service_spec: Dict[str, Any] = {"type": "ClusterIP"}
        if headless:
            # Без виртуального IP: клиенты адресуют конкретные реплики
            service_spec["clusterIP"] = "None"
        service_spec["selector"] = dict(identity.selector_labels)
        service_spec["ports"] = ports

        return {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": _metadata(identity.base_name, spec.namespace,
                                  merge_labels(labels, identity.selector_labels), owner_refs, annotations),
            "spec": service_spec,
        }

    def generate_redis_service(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        ports = [{"name": "redis", "port": spec.redis.port, "protocol": "TCP"}]
        if spec.redis.exporter.enabled:
            ports.append({"name": ExporterConfig.PORT_NAME, "port": ExporterConfig.REDIS_PORT, "protocol": "TCP"})
        return self._service(spec, REDIS_ROLE, labels, owner_refs, ports,
                             spec.redis.service_annotations, headless=True)

    def generate_sentinel_service(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        ports = [{"name": "sentinel", "port": RedisConfig.SENTINEL_PORT, "protocol": "TCP"}]
        if spec.sentinel.exporter.enabled:
            ports.append({"name": ExporterConfig.PORT_NAME, "port": ExporterConfig.SENTINEL_PORT, "protocol": "TCP"})
        return self._service(spec, SENTINEL_ROLE, labels, owner_refs, ports,
                             spec.sentinel.service_annotations, headless=True)

    def generate_predixy_service(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        ports = [{
            "name": "predixy",
            "port": PredixyConfig.PORT,
            "targetPort": PredixyConfig.PORT,
            "protocol": "TCP",
        }]
        if spec.predixy.exporter.enabled:
            ports.append({"name": ExporterConfig.PORT_NAME, "port": ExporterConfig.PREDIXY_PORT, "protocol": "TCP"})
        return self._service(spec, PREDIXY_ROLE, labels, owner_refs, ports, {}, headless=False)

    # ========================================
    # PodDisruptionBudgets
    # ========================================

    def generate_pod_disruption_budget(
        self,
        name: str,
        namespace: str,
        labels: Dict[str, str],
        selector_labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]],
        min_available: int
    ) -> Dict[str, Any]:
        return {
            "apiVersion": "policy/v1",
            "kind": "PodDisruptionBudget",
            "metadata": _metadata(name, namespace, labels, owner_refs),
            "spec": {
                "minAvailable": min_available,
                "selector": {"matchLabels": dict(selector_labels)},
            },
        }

    def generate_role_pod_disruption_budget(
        self,
        spec: TopologySpec,
        role: str,
        replicas: int,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        identity = role_identity(spec, role)
        return self.generate_pod_disruption_budget(
            identity.base_name,
            spec.namespace,
            merge_labels(labels, identity.selector_labels),
            identity.selector_labels,
            owner_refs,
            get_min_available(replicas),
        )

    # ========================================
    # Pod specs
    # ========================================

    def _role_pod_spec(self, role_spec: RoleSpec, selector_labels: Dict[str, str]) -> Dict[str, Any]:
        """Общая часть PodSpec для redis и sentinel (с defaults)"""
        pod_spec: Dict[str, Any] = {
            "affinity": get_affinity(role_spec.affinity, selector_labels),
            "securityContext": get_security_context(role_spec.security_context),
            "hostNetwork": role_spec.host_network,
            "dnsPolicy": get_dns_policy(role_spec.dns_policy),
            "terminationGracePeriodSeconds": get_termination_grace_period_seconds(
                role_spec.termination_grace_period_seconds
            ),
        }
        if role_spec.tolerations:
            pod_spec["tolerations"] = copy.deepcopy(role_spec.tolerations)
        if role_spec.topology_spread_constraints:
            pod_spec["topologySpreadConstraints"] = copy.deepcopy(role_spec.topology_spread_constraints)
        if role_spec.node_selector:
            pod_spec["nodeSelector"] = dict(role_spec.node_selector)
        if role_spec.image_pull_secrets:
            pod_spec["imagePullSecrets"] = copy.deepcopy(role_spec.image_pull_secrets)
        if role_spec.priority_class_name:
            pod_spec["priorityClassName"] = role_spec.priority_class_name
        if role_spec.service_account_name:
            pod_spec["serviceAccountName"] = role_spec.service_account_name
        return pod_spec

    def _pod_template(
        self,
        labels: Dict[str, str],
        annotations: Dict[str, str],
        pod_spec: Dict[str, Any]
    ) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"labels": dict(labels)}
        if annotations:
            metadata["annotations"] = dict(annotations)
        return {"metadata": metadata, "spec": pod_spec}

    # ========================================
    # Redis
    # ========================================

    def generate_redis_stateful_set(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        StatefulSet data-нод

        Pod'ы стартуют параллельно; pre-stop хук передает роль master
        перед остановкой контейнера.
        """
        identity = role_identity(spec, REDIS_ROLE)
        name = identity.base_name
        redis = spec.redis
        logger.info(f"Redis    Service Name: {name}")

        labels = merge_labels(labels, identity.selector_labels)
        # Роль master/slave только в шаблоне pod'а, не в selector
        pod_labels = merge_labels(labels, generate_redis_default_role_label())
        redis_env = get_redis_env(spec)

        container: Dict[str, Any] = {
            "name": "redis",
            "image": redis.image,
            "imagePullPolicy": pull_policy(redis.image_pull_policy),
            "securityContext": get_container_security_context(redis.container_security_context),
            "ports": [{"name": "redis", "containerPort": redis.port, "protocol": "TCP"}],
            "volumeMounts": get_redis_volume_mounts(spec),
            "command": get_redis_command(spec),
            "readinessProbe": _exec_probe(["/bin/sh", f"/redis-readiness/{RedisConfig.READINESS_FILE_NAME}"]),
            "livenessProbe": _exec_probe(
                [
                    "sh",
                    "-c",
                    f"redis-cli -h $(hostname) -p {redis.port} ping "
                    f"--user {RedisConfig.PROBE_USER} --pass {RedisConfig.PROBE_PASSWORD} --no-auth-warning",
                ],
                failure_threshold=6,
                period_seconds=15,
            ),
            "resources": copy.deepcopy(redis.resources),
            "lifecycle": {
                "preStop": {
                    "exec": {"command": ["/bin/sh", f"/redis-shutdown/{RedisConfig.SHUTDOWN_FILE_NAME}"]},
                },
            },
            "env": redis_env,
        }

        if redis.startup_config_map:
            container["startupProbe"] = _exec_probe(
                ["/bin/sh", f"/redis-startup/{RedisConfig.STARTUP_FILE_NAME}"],
                failure_threshold=6,
                period_seconds=15,
            )

        containers = [container]
        if redis.exporter.enabled:
            containers.append(self.create_redis_exporter_container(spec))
        containers.extend(get_containers_with_redis_env(redis.extra_containers, redis_env))

        pod_spec = self._role_pod_spec(redis, identity.selector_labels)
        if redis.init_containers:
            pod_spec["initContainers"] = get_containers_with_redis_env(redis.init_containers, redis_env)
        pod_spec["containers"] = containers
        pod_spec["volumes"] = get_redis_volumes(spec)

        stateful_set: Dict[str, Any] = {
            "apiVersion": "apps/v1",
            "kind": "StatefulSet",
            "metadata": _metadata(name, spec.namespace, labels, owner_refs),
            "spec": {
                "serviceName": name,
                "replicas": redis.replicas,
                "updateStrategy": {"type": "RollingUpdate"},
                "podManagementPolicy": "Parallel",
                "selector": {"matchLabels": dict(identity.selector_labels)},
                "template": self._pod_template(pod_labels, redis.pod_annotations, pod_spec),
            },
        }

        claim = redis.storage.persistent_volume_claim
        if claim is not None:
            stateful_set["spec"]["volumeClaimTemplates"] = [
                self._volume_claim_template(claim, owner_refs, redis.storage.keep_after_deletion)
            ]

        return stateful_set

    @staticmethod
    def _volume_claim_template(
        claim: Dict[str, Any],
        owner_refs: List[Dict[str, Any]],
        keep_after_deletion: bool
    ) -> Dict[str, Any]:
        claim_metadata = claim["metadata"]
        metadata: Dict[str, Any] = {"name": claim_metadata["name"]}
        if claim_metadata.get("labels"):
            metadata["labels"] = dict(claim_metadata["labels"])
        if claim_metadata.get("annotations"):
            metadata["annotations"] = dict(claim_metadata["annotations"])
        if not keep_after_deletion:
            # PVC удаляются вместе с RedisFailover
            metadata["ownerReferences"] = copy.deepcopy(owner_refs)

        return {
            "apiVersion": "v1",
            "kind": "PersistentVolumeClaim",
            "metadata": metadata,
            "spec": copy.deepcopy(claim["spec"]),
        }

    def create_redis_exporter_container(self, spec: TopologySpec) -> Dict[str, Any]:
        exporter = spec.redis.exporter
        env = merge_env(exporter.env, [
            {"name": "REDIS_ALIAS", "valueFrom": {"fieldRef": {"fieldPath": "metadata.name"}}},
        ])
        env = merge_env(env, get_redis_env(spec))

        container: Dict[str, Any] = {
            "name": ExporterConfig.REDIS_CONTAINER_NAME,
            "image": exporter.image,
            "imagePullPolicy": pull_policy(exporter.image_pull_policy),
            "securityContext": get_container_security_context(exporter.container_security_context),
        }
        if exporter.args:
            container["args"] = list(exporter.args)
        container["env"] = env
        container["ports"] = [{"name": "metrics", "containerPort": ExporterConfig.REDIS_PORT, "protocol": "TCP"}]
        container["resources"] = get_exporter_resources(exporter.resources)
        return container

    # ========================================
    # Sentinel
    # ========================================

    def generate_sentinel_stateful_set(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        StatefulSet sentinel

        Обновление только OnDelete: рестарты sentinel координируются извне.
        """
        identity = role_identity(spec, SENTINEL_ROLE)
        name = identity.base_name
        sentinel = spec.sentinel
        logger.info(f"Sentinel Service Name: {name}")

        labels = merge_labels(labels, identity.selector_labels)
        config_file = RedisConfig.SENTINEL_CONFIG_FILE_NAME
        ping_command = ["sh", "-c", f"redis-cli -h $(hostname) -p {RedisConfig.SENTINEL_PORT} ping"]

        config_copy = {
            "name": "sentinel-config-copy",
            "image": sentinel.image,
            "imagePullPolicy": pull_policy(sentinel.image_pull_policy),
            "securityContext": get_container_security_context(sentinel.config_copy.container_security_context),
            "volumeMounts": [
                {"name": SENTINEL_CONFIG_VOLUME, "mountPath": "/redis"},
                {"name": SENTINEL_WRITABLE_CONFIG_VOLUME, "mountPath": "/redis-writable"},
            ],
            "command": ["cp", f"/redis/{config_file}", f"/redis-writable/{config_file}"],
            "resources": get_config_copy_resources(),
        }

        container: Dict[str, Any] = {
            "name": "sentinel",
            "image": sentinel.image,
            "imagePullPolicy": pull_policy(sentinel.image_pull_policy),
            "securityContext": get_container_security_context(sentinel.container_security_context),
            "ports": [{"name": "sentinel", "containerPort": RedisConfig.SENTINEL_PORT, "protocol": "TCP"}],
            "volumeMounts": get_sentinel_volume_mounts(spec),
            "command": get_sentinel_command(spec),
            "readinessProbe": _exec_probe(ping_command),
            "livenessProbe": _exec_probe(list(ping_command)),
            "resources": copy.deepcopy(sentinel.resources),
        }

        if sentinel.startup_config_map:
            container["startupProbe"] = _exec_probe(
                ["/bin/sh", f"/sentinel-startup/{RedisConfig.STARTUP_FILE_NAME}"],
                failure_threshold=6,
                period_seconds=15,
            )

        containers = [container]
        if sentinel.exporter.enabled:
            containers.append(self.create_sentinel_exporter_container(spec))
        containers.extend(copy.deepcopy(sentinel.extra_containers))

        pod_spec = self._role_pod_spec(sentinel, identity.selector_labels)
        pod_spec["initContainers"] = [config_copy, *copy.deepcopy(sentinel.init_containers)]
        pod_spec["containers"] = containers
        pod_spec["volumes"] = get_sentinel_volumes(spec)

        return {
            "apiVersion": "apps/v1",
            "kind": "StatefulSet",
            "metadata": _metadata(name, spec.namespace, labels, owner_refs),
            "spec": {
                "serviceName": name,
                "replicas": sentinel.replicas,
                "updateStrategy": {"type": "OnDelete"},
                "podManagementPolicy": "Parallel",
                "selector": {"matchLabels": dict(identity.selector_labels)},
                "template": self._pod_template(labels, sentinel.pod_annotations, pod_spec),
            },
        }

    def create_sentinel_exporter_container(self, spec: TopologySpec) -> Dict[str, Any]:
        exporter = spec.sentinel.exporter
        env = merge_env(exporter.env, [
            {"name": "REDIS_ALIAS", "valueFrom": {"fieldRef": {"fieldPath": "metadata.name"}}},
            {"name": "REDIS_EXPORTER_WEB_LISTEN_ADDRESS", "value": f"0.0.0.0:{ExporterConfig.SENTINEL_PORT}"},
            {"name": "REDIS_ADDR", "value": f"redis://127.0.0.1:{RedisConfig.SENTINEL_PORT}"},
        ])

        container: Dict[str, Any] = {
            "name": ExporterConfig.SENTINEL_CONTAINER_NAME,
            "image": exporter.image,
            "imagePullPolicy": pull_policy(exporter.image_pull_policy),
            "securityContext": get_container_security_context(exporter.container_security_context),
        }
        if exporter.args:
            container["args"] = list(exporter.args)
        container["env"] = env
        container["ports"] = [{"name": "metrics", "containerPort": ExporterConfig.SENTINEL_PORT, "protocol": "TCP"}]
        container["resources"] = get_exporter_resources(exporter.resources)
        return container

    # ========================================
    # Predixy
    # ========================================

    def generate_predixy_deployment(
        self,
        spec: TopologySpec,
        labels: Dict[str, str],
        owner_refs: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Deployment прокси: RollingUpdate с maxSurge/maxUnavailable 25%"""
        identity = role_identity(spec, PREDIXY_ROLE)
        name = identity.base_name
        predixy = spec.predixy
        logger.info(f"Predixy  Service Name: {name}")

        labels = merge_labels(labels, identity.selector_labels)
        file_path = PredixyConfig.FILE_MOUNT_PATH
        ping_command = [
            "sh",
            "-c",
            f"redis-cli -h $(hostname) -p {PredixyConfig.PORT} -a {RedisConfig.PROBE_PASSWORD} ping",
        ]

        config_copy = {
            "name": "predixy-config-copy",
            "image": predixy.image,
            "imagePullPolicy": pull_policy(predixy.image_pull_policy),
            "securityContext": get_container_security_context(predixy.container_security_context),
            "volumeMounts": [
                {"name": PREDIXY_FILE_CONFIG_VOLUME, "mountPath": file_path},
                {"name": PREDIXY_CONFIG_VOLUME, "mountPath": PredixyConfig.MOUNT_PATH},
            ],
            "command": [
                "cp",
                f"{file_path}/{PredixyConfig.CONFIG_FILE_NAME}",
                f"{file_path}/{PredixyConfig.SENTINEL_FILE_NAME}",
                f"{file_path}/{PredixyConfig.AUTH_FILE_NAME}",
                PredixyConfig.MOUNT_PATH,
            ],
            "resources": get_config_copy_resources(),
        }

        container = {
            "name": "predixy",
            "image": predixy.image,
            "imagePullPolicy": pull_policy(predixy.image_pull_policy),
            "securityContext": get_container_security_context(predixy.container_security_context),
            "ports": [{"name": "predixy", "containerPort": PredixyConfig.PORT, "protocol": "TCP"}],
            "volumeMounts": get_predixy_volume_mounts(),
            "command": get_predixy_command(),
            "resources": copy.deepcopy(predixy.resources),
            "readinessProbe": _exec_probe(ping_command),
            "livenessProbe": _exec_probe(list(ping_command)),
            "lifecycle": {
                "preStop": {
                    "exec": {"command": ["/bin/sh", "-c", f"sleep {PredixyConfig.PRE_STOP_SLEEP}"]},
                },
            },
        }

        containers = [container]
        if predixy.exporter.enabled:
            containers.append(self.create_predixy_exporter_container(spec))

        pod_spec: Dict[str, Any] = {
            "affinity": get_affinity(None, identity.selector_labels),
            "securityContext": get_security_context(None),
            "dnsPolicy": get_dns_policy(None),
            "terminationGracePeriodSeconds": get_termination_grace_period_seconds(None),
        }
        if predixy.node_selector:
            pod_spec["nodeSelector"] = dict(predixy.node_selector)
        if predixy.image_pull_secrets:
            pod_spec["imagePullSecrets"] = copy.deepcopy(predixy.image_pull_secrets)
        pod_spec["initContainers"] = [config_copy]
        pod_spec["containers"] = containers
        pod_spec["volumes"] = get_predixy_volumes(spec)

        rate = PredixyConfig.ROLLING_UPDATE_RATE
        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": _metadata(name, spec.namespace, labels, owner_refs),
            "spec": {
                "replicas": predixy.replicas,
                "selector": {"matchLabels": dict(identity.selector_labels)},
                "strategy": {
                    "type": "RollingUpdate",
                    "rollingUpdate": {"maxSurge": rate, "maxUnavailable": rate},
                },
                "template": self._pod_template(labels, predixy.pod_annotations, pod_spec),
            },
        }

    def create_predixy_exporter_container(self, spec: TopologySpec) -> Dict[str, Any]:
        exporter = spec.predixy.exporter
        env = copy.deepcopy(exporter.env)
        if spec.auth.enabled:
            env = merge_env(env, [secret_env("PREDIXY_PASSWORD", spec.auth.secret_path, spec.auth.secret_key)])

        return {
            "name": ExporterConfig.PREDIXY_CONTAINER_NAME,
            "image": exporter.image,
            "imagePullPolicy": pull_policy(exporter.image_pull_policy),
            "securityContext": get_container_security_context(exporter.container_security_context),
            "args": [*exporter.args, "-name", spec.name],
            "env": env,
            "ports": [{"name": "metrics", "containerPort": ExporterConfig.PREDIXY_PORT, "protocol": "TCP"}],
            "resources": get_exporter_resources(exporter.resources),
        }


def generate_manifests(
    spec: Union[TopologySpec, Dict[str, Any]],
    credentials: Optional[Credentials] = None,
    sentinels: Optional[List[str]] = None
) -> Dict[str, str]:
    """
    Генерирует YAML манифесты RedisFailover

    Returns:
        Dict с именами файлов и их содержимым
    """
    return FailoverGenerator().generate(spec, credentials, sentinels).to_manifests()


__all__ = [
    "FailoverGenerator",
    "generate_manifests",
    "get_min_available",
    "get_quorum",
]
