"""
Unit тесты для рендеринга конфигов redis / sentinel / predixy
"""

import re

import pytest
from src.redis_failover.errors import TemplateRenderError
from src.redis_failover.models import Credentials, TopologySpec
from src.redis_failover.tools.config_templates import ConfigTemplateEngine, get_quorum


def make_spec(**overrides):
    data = {"metadata": {"name": "demo", "namespace": "cache"}}
    data.update(overrides)
    return TopologySpec.from_dict(data)


class TestQuorum:
    """Тесты кворума sentinel"""

    @pytest.mark.parametrize("replicas,expected", [(1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (7, 4)])
    def test_quorum_is_majority(self, replicas, expected):
        spec = make_spec(sentinel={"replicas": replicas})
        assert get_quorum(spec) == expected

    def test_quorum_recomputed_on_resize(self):
        """Кворум вычисляется заново из нового числа реплик"""
        engine = ConfigTemplateEngine()
        before = engine.render_sentinel_config(make_spec(sentinel={"replicas": 3}))
        after = engine.render_sentinel_config(make_spec(sentinel={"replicas": 5}))

        assert "sentinel monitor master0 127.0.0.1 6379 2" in before
        assert "sentinel monitor master0 127.0.0.1 6379 3" in after


class TestRedisConfig:
    """Тесты redis.conf"""

    @pytest.fixture
    def engine(self):
        return ConfigTemplateEngine()

    def test_baseline(self, engine):
        config = engine.render_redis_config(make_spec(redis={"port": 6380, "maxMemory": "1gb"}))

        assert config.startswith("slaveof 127.0.0.1 6380\nport 6380\n")
        assert "maxmemory 1gb" in config
        assert "logfile /log/redis.log" in config
        assert 'save ""' in config
        assert "appendonly no" in config
        assert "user pinger -@all +ping on >pingpass" in config
        for command in ("keys", "flushall", "flushdb", "debug", "shutdown"):
            assert f'rename-command {command} ""' in config

    def test_command_renames_verbatim(self, engine):
        spec = make_spec(redis={"customCommandRenames": [
            {"from": "CONFIG", "to": "secret-config"},
            {"from": "EVAL", "to": ""},
        ]})
        config = engine.render_redis_config(spec)

        assert 'rename-command "CONFIG" "secret-config"' in config
        assert 'rename-command "EVAL" ""' in config
        # Пользовательские переименования идут после встроенных
        assert config.index('rename-command shutdown ""') < config.index('rename-command "CONFIG"')

    def test_no_auth_lines_without_auth(self, engine):
        config = engine.render_redis_config(make_spec())

        assert "masterauth" not in config
        assert "requirepass" not in config

    def test_auth_placeholder_by_default(self, engine):
        config = engine.render_redis_config(make_spec(auth={"secretPath": "demo-auth"}))

        assert "masterauth __PLACEHOLDER_REDIS_PASSWORD__" in config
        assert "requirepass __PLACEHOLDER_REDIS_PASSWORD__" in config

    def test_auth_with_resolved_credentials(self, engine):
        credentials = Credentials(redis_password="s3cr3t")
        config = engine.render_redis_config(make_spec(auth={"secretPath": "demo-auth"}), credentials)

        assert "masterauth s3cr3t" in config
        assert "requirepass s3cr3t" in config

    def test_deterministic(self, engine):
        spec = make_spec(auth={"secretPath": "demo-auth"})
        assert engine.render_redis_config(spec) == engine.render_redis_config(spec)


class TestSentinelConfig:
    """Тесты sentinel.conf"""

    def test_monitor_block(self):
        config = ConfigTemplateEngine().render_sentinel_config(make_spec())

        assert config.splitlines() == [
            "sentinel monitor master0 127.0.0.1 6379 2",
            "sentinel down-after-milliseconds master0 5000",
            "sentinel failover-timeout master0 60000",
            "sentinel parallel-syncs master0 2",
            "logfile /log/sentinel.log",
        ]


class TestPredixyConfig:
    """Тесты конфигов predixy"""

    @pytest.fixture
    def engine(self):
        return ConfigTemplateEngine()

    def test_main_config_includes(self, engine):
        config = engine.render_predixy_config()

        assert "Bind 0.0.0.0:12120" in config
        assert "Include sentinel.conf" in config
        assert "Include auth.conf" in config

    def test_master_group_matches_sentinel(self, engine):
        """Группа мастера одинакова в sentinel.conf и в конфиге predixy"""
        spec = make_spec()
        sentinel_group = re.search(r"sentinel monitor (\S+)", engine.render_sentinel_config(spec)).group(1)
        predixy_group = re.search(r"Group (\S+) \{", engine.render_predixy_sentinel_config(spec)).group(1)

        assert sentinel_group == predixy_group == "master0"

    def test_every_sentinel_listed(self, engine):
        spec = make_spec(sentinel={"replicas": 3})
        config = engine.render_predixy_sentinel_config(spec)

        for index in range(3):
            assert f"+ rf-s-demo-{index}.rf-s-demo.cache.svc.cluster.local:26379" in config

    def test_explicit_sentinels(self, engine):
        config = engine.render_predixy_sentinel_config(make_spec(), sentinels=["10.0.0.1:26379"])

        assert "+ 10.0.0.1:26379" in config
        assert "rf-s-demo-0" not in config

    def test_password_only_with_auth(self, engine):
        assert "Password" not in engine.render_predixy_sentinel_config(make_spec())

        config = engine.render_predixy_sentinel_config(make_spec(auth={"secretPath": "demo-auth"}))
        assert "Password __PLACEHOLDER_REDIS_PASSWORD__" in config

    def test_auth_tiers_without_auth(self, engine):
        config = engine.render_predixy_auth_config(make_spec())

        assert "Auth pingpass {" in config
        assert "Auth __PLACEHOLDER_PROXY_READ_PASSWORD__ {" in config
        assert "Auth __PLACEHOLDER_PROXY_ADMIN_PASSWORD__ {" in config
        # Анонимный уровень write
        assert "    Auth {\n        Mode write" in config

    def test_write_tier_uses_redis_password(self, engine):
        credentials = Credentials(redis_password="s3cr3t")
        config = engine.render_predixy_auth_config(make_spec(auth={"secretPath": "demo-auth"}), credentials)

        assert "Auth s3cr3t {\n        Mode write" in config


class TestScripts:
    """Тесты скриптов shutdown / readiness"""

    def test_shutdown_asks_sentinel(self):
        script = ConfigTemplateEngine().render_shutdown_script(make_spec())

        assert "redis-cli -h rf-s-demo -p 26379" in script
        assert "SENTINEL failover master0" in script
        assert "save" in script

    def test_readiness_uses_port(self):
        script = ConfigTemplateEngine().render_readiness_script(make_spec(redis={"port": 7000}))
        assert 'cmd="redis-cli -p 7000"' in script


class TestRenderAll:
    """Тесты render_all"""

    def test_without_predixy(self):
        artifacts = ConfigTemplateEngine().render_all(make_spec())
        files = [(artifact.role, artifact.filename) for artifact in artifacts]

        assert files == [
            ("redis", "redis.conf"),
            ("redis", "shutdown.sh"),
            ("redis", "ready.sh"),
            ("sentinel", "sentinel.conf"),
        ]

    def test_with_predixy(self):
        artifacts = ConfigTemplateEngine().render_all(make_spec(predixy={"enabled": True}))
        predixy_files = [artifact.filename for artifact in artifacts if artifact.role == "predixy"]

        assert predixy_files == ["predixy.conf", "sentinel.conf", "auth.conf"]

    def test_template_error(self):
        """Ошибка шаблона превращается в TemplateRenderError"""
        engine = ConfigTemplateEngine()
        with pytest.raises(TemplateRenderError, match="broken.conf"):
            engine._render("broken.conf", "value {{ missing }}")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
