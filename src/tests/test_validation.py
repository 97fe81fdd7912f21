"""
Unit тесты для validation утилит
Критически важные функции безопасности
"""

import pytest
from src.redis_failover.models import TopologySpec
from src.redis_failover.tools.resource_assembler import FailoverGenerator
from src.redis_failover.utils.validation import (
    validate_k8s_resource_name,
    validate_k8s_namespace,
    sanitize_secret_value,
    SecurityValidator,
)


class TestK8sValidation:
    """Тесты валидации Kubernetes имен"""

    def test_valid_resource_names(self):
        """Тест валидных имен ресурсов"""
        valid_names = [
            "demo",
            "cache-prod",
            "sessions-1",
            "test123",
            "a",  # минимальная длина
            "a" * 253,  # максимальная длина
        ]

        for name in valid_names:
            result = validate_k8s_resource_name(name, "test")
            assert result == name, f"Валидное имя '{name}' должно пройти валидацию"

    def test_invalid_resource_names(self):
        """Тест невалидных имен ресурсов"""
        invalid_names = [
            "",  # пустое
            "MyCache",  # заглавные буквы
            "my_cache",  # подчеркивание
            "-cache",  # начинается с дефиса
            "cache-",  # заканчивается дефисом
            "my cache",  # пробел
            "cache@123",  # спецсимволы
            "a" * 254,  # слишком длинное
        ]

        for name in invalid_names:
            with pytest.raises(ValueError):
                validate_k8s_resource_name(name, "test")

    def test_namespace_validation(self):
        """Тест валидации namespace"""
        assert validate_k8s_namespace("default") == "default"
        assert validate_k8s_namespace("cache") == "cache"
        assert validate_k8s_namespace("kube-system") == "kube-system"

        with pytest.raises(ValueError):
            validate_k8s_namespace("Invalid-Namespace")

        with pytest.raises(ValueError, match="too long"):
            validate_k8s_namespace("n" * 64)

    def test_injection_protection(self):
        """Тест защиты от injection атак"""
        malicious_names = [
            "../etc/passwd",
            "'; DROP TABLE users; --",
            "$(rm -rf /)",
            "`whoami`",
            "${IFS}cat${IFS}/etc/passwd",
        ]

        for name in malicious_names:
            with pytest.raises(ValueError):
                validate_k8s_resource_name(name, "RedisFailover")


class TestSecretSanitization:
    """Тесты маскировки секретов для логов"""

    def test_long_secret(self):
        password = "redis-1234567890abcdefghijklmnop"
        sanitized = sanitize_secret_value(password)

        # Должен показывать только первые и последние 4 символа
        assert sanitized == "redi...mnop"
        assert "1234567890abcdefghij" not in sanitized

    def test_short_secret_fully_hidden(self):
        assert sanitize_secret_value("short") == "***REDACTED***"
        assert sanitize_secret_value("") == "***REDACTED***"


class TestSecurityValidator:
    """Тесты SecurityValidator класса"""

    def test_generated_objects_are_clean(self):
        """Сгенерированные объекты с defaults не дают предупреждений о privileged/root"""
        spec = TopologySpec.from_dict({
            "metadata": {"name": "demo", "uid": "uid-1"},
            "redis": {"resources": {"limits": {"cpu": "1", "memory": "1Gi"}}},
            "sentinel": {"resources": {"limits": {"cpu": "100m", "memory": "64Mi"}}},
            "auth": {"secretPath": "demo-auth"},
        })
        graph = FailoverGenerator().generate(spec)

        result = SecurityValidator.validate_objects(graph.objects())

        assert result['valid'] is True
        assert result['warnings'] == []

    def test_plaintext_password_detection(self):
        """Тест обнаружения пароля открытым текстом"""
        objects = [{
            "kind": "StatefulSet",
            "metadata": {"name": "rf-r-demo"},
            "spec": {"template": {"spec": {"containers": [{
                "name": "backup",
                "resources": {"limits": {"cpu": "1"}},
                "env": [{"name": "REDIS_PASSWORD", "value": "hardcoded"}],
            }]}}},
        }]

        result = SecurityValidator.validate_objects(objects)

        assert result['valid'] is False
        assert any("REDIS_PASSWORD" in w for w in result['warnings'])
        assert any("secretKeyRef" in r for r in result['recommendations'])

    def test_privileged_detection(self):
        """Тест обнаружения privileged режима"""
        spec = TopologySpec.from_dict({
            "metadata": {"name": "demo", "uid": "uid-1"},
            "redis": {"containerSecurityContext": {"privileged": True}},
        })
        graph = FailoverGenerator().generate(spec)

        result = SecurityValidator.validate_objects(graph.objects())

        assert any("privileged" in w.lower() for w in result['warnings'])

    def test_resource_limits_detection(self):
        """Тест обнаружения отсутствия resource limits"""
        graph = FailoverGenerator().generate({"metadata": {"name": "demo", "uid": "uid-1"}})

        result = SecurityValidator.validate_objects(graph.objects())

        assert any("rf-r-demo/redis" in w and "limits" in w for w in result['warnings'])

    def test_non_workloads_skipped(self):
        objects = [{"kind": "ConfigMap", "metadata": {"name": "rf-r-demo"}, "data": {}}]
        assert SecurityValidator.validate_objects(objects)['warnings'] == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
