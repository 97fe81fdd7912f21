"""
Утилиты для валидации и security checks
"""

import re
import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

DNS_LABEL_PATTERN = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$')


def validate_k8s_resource_name(name: str, resource_type: str = "resource") -> str:
    """
    Валидирует имя Kubernetes ресурса согласно RFC 1123 DNS label

    Правила:
    - строчные буквы и цифры + дефисы
    - максимум 253 символа
    - начало и конец - буквенно-цифровые символы

    Args:
        name: Имя ресурса для валидации
        resource_type: Тип ресурса (для сообщений об ошибках)

    Returns:
        Валидированное имя

    Raises:
        ValueError: Если имя не соответствует требованиям K8s
    """
    if not name:
        raise ValueError(f"K8s {resource_type} name cannot be empty")

    if len(name) > 253:
        raise ValueError(
            f"K8s {resource_type} name too long: {len(name)} chars (max 253). "
            f"Name: '{name[:50]}...'"
        )

    if not DNS_LABEL_PATTERN.match(name):
        raise ValueError(
            f"Invalid K8s {resource_type} name '{name}'. "
            "Must be lowercase alphanumeric with hyphens, "
            "starting and ending with alphanumeric character. "
            "Examples: 'demo', 'cache-prod', 'sessions-1'"
        )

    logger.debug(f"Validated K8s {resource_type} name: {name}")
    return name


def validate_k8s_namespace(namespace: str) -> str:
    """
    Валидирует имя Kubernetes namespace

    Raises:
        ValueError: Если namespace не валиден
    """
    if len(namespace) > 63:
        raise ValueError(f"K8s namespace name too long: {len(namespace)} chars (max 63)")
    # Namespace имеет те же правила что и resource name
    return validate_k8s_resource_name(namespace, resource_type="namespace")


def sanitize_secret_value(value: str, placeholder: str = "***REDACTED***") -> str:
    """
    Заменяет секретное значение на placeholder для логирования

    Args:
        value: Секретное значение
        placeholder: Что показывать вместо значения

    Returns:
        Безопасная строка для логирования
    """
    if not value or len(value) < 12:
        return placeholder

    # Показываем только первые и последние 4 символа
    return f"{value[:4]}...{value[-4:]}"


class SecurityValidator:
    """Проверки сгенерированных объектов"""

    @staticmethod
    def validate_objects(objects: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Проверяет объекты на типичные проблемы безопасности

        Returns:
            {
                'valid': bool,
                'warnings': [],
                'recommendations': []
            }
        """
        result: Dict[str, Any] = {
            'valid': True,
            'warnings': [],
            'recommendations': []
        }

        for obj in objects:
            name = f"{obj.get('kind')}/{obj.get('metadata', {}).get('name')}"
            pod_spec = SecurityValidator._pod_spec(obj)
            if pod_spec is None:
                continue

            pod_ctx = pod_spec.get("securityContext") or {}
            if pod_ctx.get("runAsNonRoot") is False:
                result['warnings'].append(f"⚠️  {name}: pod запускается от root")
                result['recommendations'].append("💡 Рекомендуется runAsNonRoot: true")

            containers = pod_spec.get("containers", []) + pod_spec.get("initContainers", [])
            for container in containers:
                ctx = container.get("securityContext") or {}
                if ctx.get("privileged"):
                    result['warnings'].append(f"⚠️  {name}/{container['name']}: privileged режим")
                    result['recommendations'].append("💡 Используйте capabilities вместо privileged")
                if not container.get("resources", {}).get("limits"):
                    result['warnings'].append(f"⚠️  {name}/{container['name']}: отсутствуют resource limits")
                for env in container.get("env", []):
                    if env.get("name", "").endswith("PASSWORD") and "value" in env:
                        result['valid'] = False
                        result['warnings'].append(
                            f"⚠️  {name}/{container['name']}: пароль {env['name']} задан открытым текстом"
                        )
                        result['recommendations'].append("💡 Используйте valueFrom.secretKeyRef")

        return result

    @staticmethod
    def _pod_spec(obj: Dict[str, Any]) -> Dict[str, Any] | None:
        if obj.get("kind") not in ("StatefulSet", "Deployment"):
            return None
        return obj.get("spec", {}).get("template", {}).get("spec")
