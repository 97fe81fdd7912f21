"""
Unit тесты для имен и лейблов
"""

import pytest
from src.redis_failover.models import TopologySpec
from src.redis_failover.tools.naming import (
    generate_owner_references,
    generate_redis_default_role_label,
    generate_selector_labels,
    get_predixy_name,
    get_redis_name,
    get_sentinel_name,
    merge_labels,
    role_identity,
    sentinel_addresses,
)


class TestNaming:
    """Тесты детерминированных имен"""

    @pytest.fixture
    def spec(self):
        return TopologySpec.from_dict({
            "metadata": {"name": "demo", "namespace": "cache", "uid": "uid-1"},
        })

    def test_role_names(self, spec):
        """Тест имен rf-<роль>-<имя>"""
        assert get_redis_name(spec) == "rf-r-demo"
        assert get_sentinel_name(spec) == "rf-s-demo"
        assert get_predixy_name(spec) == "rf-p-demo"

    def test_role_identity_stable(self, spec):
        """Повторный вызов дает ту же идентичность"""
        first = role_identity(spec, "sentinel")
        second = role_identity(spec, "sentinel")

        assert first == second
        assert first.base_name == "rf-s-demo"
        assert first.selector_labels == {
            "app.kubernetes.io/part-of": "redis-failover",
            "app.kubernetes.io/component": "sentinel",
            "app.kubernetes.io/name": "demo",
        }

    def test_unknown_role(self, spec):
        with pytest.raises(ValueError, match="Unknown role"):
            role_identity(spec, "proxy")

    def test_distinct_identities_do_not_collide(self):
        """Разные RedisFailover не пересекаются по selector-лейблам"""
        one = TopologySpec.from_dict({"metadata": {"name": "one"}})
        two = TopologySpec.from_dict({"metadata": {"name": "two"}})

        assert role_identity(one, "redis").selector_labels != role_identity(two, "redis").selector_labels
        assert role_identity(one, "redis").selector_labels != role_identity(one, "sentinel").selector_labels


class TestLabels:
    """Тесты лейблов и owner references"""

    def test_selector_labels_have_no_role(self):
        """Лейбл текущей роли не попадает в selector"""
        labels = generate_selector_labels("redis", "demo")
        assert "redisfailovers-role" not in labels

    def test_default_role_label(self):
        assert generate_redis_default_role_label() == {"redisfailovers-role": "slave"}

    def test_merge_labels_later_wins(self):
        merged = merge_labels({"a": "1", "b": "1"}, {"b": "2"}, None, {"c": "3"})
        assert merged == {"a": "1", "b": "2", "c": "3"}

    def test_owner_references(self):
        spec = TopologySpec.from_dict({"metadata": {"name": "demo", "uid": "1234"}})
        refs = generate_owner_references(spec)

        assert len(refs) == 1
        assert refs[0]["kind"] == "RedisFailover"
        assert refs[0]["apiVersion"] == "databases.spotahome.com/v1"
        assert refs[0]["name"] == "demo"
        assert refs[0]["uid"] == "1234"
        assert refs[0]["controller"] is True


class TestSentinelAddresses:
    """Тесты адресов sentinel для predixy"""

    def test_one_address_per_replica(self):
        spec = TopologySpec.from_dict({
            "metadata": {"name": "demo", "namespace": "cache"},
            "sentinel": {"replicas": 5},
        })
        addresses = sentinel_addresses(spec)

        assert len(addresses) == 5
        assert addresses[0] == "rf-s-demo-0.rf-s-demo.cache.svc.cluster.local:26379"
        assert addresses[4].startswith("rf-s-demo-4.")
        assert len(set(addresses)) == 5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
