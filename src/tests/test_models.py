"""
Unit тесты для модели спецификации
"""

import pytest
import yaml
from src.redis_failover.errors import SpecValidationError
from src.redis_failover.models import Credentials, ResourceGraph, TopologySpec
from src.redis_failover.tools.naming import get_redis_name, sentinel_addresses

MANIFEST = """
apiVersion: databases.spotahome.com/v1
kind: RedisFailover
metadata:
  name: demo
  namespace: cache
  uid: 0b5c3f4e
  resourceVersion: "123"
  labels:
    team: platform
spec:
  redis:
    replicas: 3
    storage:
      keepAfterDeletion: true
      persistentVolumeClaim:
        metadata:
          name: redis-data
        spec:
          accessModes: [ReadWriteOnce]
          resources:
            requests:
              storage: 1Gi
  sentinel:
    replicas: 5
  auth:
    secretPath: demo-auth
"""


class TestTopologySpec:
    """Тесты валидации спецификации"""

    def test_from_yaml(self):
        spec = TopologySpec.from_yaml(MANIFEST)

        assert spec.name == "demo"
        assert spec.namespace == "cache"
        assert spec.metadata.uid == "0b5c3f4e"
        assert spec.metadata.labels == {"team": "platform"}
        assert spec.sentinel.replicas == 5
        assert spec.redis.storage.keep_after_deletion is True
        assert spec.auth.enabled is True
        assert spec.auth.secret_key == "password"

    def test_defaults(self):
        spec = TopologySpec.from_dict({"metadata": {"name": "demo"}})

        assert spec.namespace == "default"
        assert spec.redis.replicas == 3
        assert spec.redis.port == 6379
        assert spec.sentinel.replicas == 3
        assert spec.predixy.enabled is False
        assert spec.auth.enabled is False

    def test_snake_case_accepted(self):
        spec = TopologySpec.from_dict({
            "metadata": {"name": "demo"},
            "redis": {"max_memory": "512mb"},
        })
        assert spec.redis.max_memory == "512mb"

    @pytest.mark.parametrize("data", [
        {},
        {"metadata": {}},
        {"metadata": {"name": ""}},
        {"metadata": {"name": "Demo"}},
        {"metadata": {"name": "demo_1"}},
        {"metadata": {"name": "d" * 60}},
        {"metadata": {"name": "demo", "namespace": "Bad_NS"}},
        {"metadata": {"name": "demo"}, "redis": {"replicas": 0}},
        {"metadata": {"name": "demo"}, "sentinel": {"replicas": -1}},
        {"metadata": {"name": "demo"}, "redis": {"unknownField": 1}},
    ])
    def test_invalid_specs(self, data):
        with pytest.raises(SpecValidationError):
            TopologySpec.from_dict(data)

    def test_not_a_mapping(self):
        with pytest.raises(SpecValidationError, match="mapping"):
            TopologySpec.from_dict(["demo"])

    def test_invalid_yaml(self):
        with pytest.raises(SpecValidationError, match="YAML"):
            TopologySpec.from_yaml("metadata: [unclosed")

    def test_spec_error_is_value_error(self):
        with pytest.raises(ValueError):
            TopologySpec.from_dict({"metadata": {"name": "demo"}, "redis": {"replicas": 0}})


class TestStorageValidation:
    """Тесты режимов хранилища"""

    def test_conflicting_storage_modes(self):
        with pytest.raises(SpecValidationError, match="mutually exclusive"):
            TopologySpec.from_dict({
                "metadata": {"name": "demo"},
                "redis": {"storage": {
                    "emptyDir": {},
                    "persistentVolumeClaim": {"metadata": {"name": "data"}, "spec": {}},
                }},
            })

    def test_claim_requires_name(self):
        with pytest.raises(SpecValidationError, match="metadata.name"):
            TopologySpec.from_dict({
                "metadata": {"name": "demo"},
                "redis": {"storage": {"persistentVolumeClaim": {"spec": {}}}},
            })

    def test_claim_requires_spec(self):
        with pytest.raises(SpecValidationError, match="spec must be an object"):
            TopologySpec.from_dict({
                "metadata": {"name": "demo"},
                "redis": {"storage": {"persistentVolumeClaim": {"metadata": {"name": "data"}}}},
            })

    def test_extra_container_requires_name(self):
        with pytest.raises(SpecValidationError):
            TopologySpec.from_dict({
                "metadata": {"name": "demo"},
                "redis": {"extraContainers": [{"image": "busybox"}]},
            })


class TestCredentials:
    """Тесты учетных данных"""

    def test_placeholders_by_default(self):
        credentials = Credentials()

        assert credentials.redis_password == "__PLACEHOLDER_REDIS_PASSWORD__"
        assert credentials.proxy_read_password == "__PLACEHOLDER_PROXY_READ_PASSWORD__"
        assert credentials.proxy_admin_password == "__PLACEHOLDER_PROXY_ADMIN_PASSWORD__"

    @pytest.mark.parametrize("value", ["", "two words", "line\nbreak"])
    def test_invalid_password(self, value):
        with pytest.raises(ValueError):
            Credentials(redis_password=value)


class TestNameLength:
    """Тесты длины имени: StatefulSet не длиннее 52, pod'ы и DNS имена не длиннее 63"""

    def test_longest_name_accepted(self):
        name = "a" * 47
        spec = TopologySpec.from_dict({"metadata": {"name": name}, "sentinel": {"replicas": 11}})

        assert len(get_redis_name(spec)) == 52
        assert len(f"{get_redis_name(spec)}-0") <= 63
        for address in sentinel_addresses(spec):
            assert len(address.split(".")[0]) <= 63

    def test_name_over_limit_rejected(self):
        with pytest.raises(SpecValidationError, match="too long"):
            TopologySpec.from_dict({"metadata": {"name": "a" * 48}})


class TestCommandRenames:
    """Тесты переименования команд в redis.conf"""

    @pytest.mark.parametrize("rename", [
        {"from": 'CONFIG"\nrequirepass x', "to": "cfg"},
        {"from": "CONFIG", "to": "a b"},
        {"from": "CONFIG", "to": "x'y"},
        {"from": "CONFIG", "to": "x\\y"},
        {"from": "", "to": "cfg"},
    ])
    def test_invalid_rename(self, rename):
        with pytest.raises(SpecValidationError):
            TopologySpec.from_dict({"metadata": {"name": "demo"}, "redis": {"customCommandRenames": [rename]}})

    def test_empty_target_disables_command(self):
        spec = TopologySpec.from_dict({
            "metadata": {"name": "demo"},
            "redis": {"customCommandRenames": [{"from": "FLUSHALL", "to": ""}]},
        })

        assert spec.redis.custom_command_renames[0].from_ == "FLUSHALL"
        assert spec.redis.custom_command_renames[0].to == ""


class TestResourceGraph:
    """Тесты выходного графа"""

    def test_empty_groups_skipped(self):
        graph = ResourceGraph(config_maps=[{
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"name": "rf-r-demo"},
            "data": {"redis.conf": "port 6379\nmaxmemory 0\n"},
        }])
        manifests = graph.to_manifests()

        assert list(manifests) == ["configmap.yaml"]
        document = yaml.safe_load(manifests["configmap.yaml"])
        assert document["data"]["redis.conf"] == "port 6379\nmaxmemory 0\n"
        assert "redis.conf: |" in manifests["configmap.yaml"]

    def test_find(self):
        obj = {"kind": "Service", "metadata": {"name": "rf-s-demo"}}
        graph = ResourceGraph(services=[obj])

        assert graph.find("Service", "rf-s-demo") is obj
        assert graph.find("ConfigMap", "rf-s-demo") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
