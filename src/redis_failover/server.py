#!/usr/bin/env python3
"""
Redis Failover Generator - MCP Server
Главный файл MCP сервера для генерации объектов RedisFailover
"""

import asyncio
import sys
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

# Настройка логирования
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

try:
    from mcp.server import Server
    from mcp.server.stdio import stdio_server
    from mcp import types
except ImportError:
    logger.error("MCP библиотека не установлена! Установите: pip install mcp")
    sys.exit(1)

from dotenv import load_dotenv
import yaml

# Загрузка переменных окружения
load_dotenv()

from .config import OutputConfig, SecretsConfig
from .models import Credentials, TopologySpec
from .tools.config_templates import ConfigTemplateEngine, get_quorum
from .tools.resource_assembler import FailoverGenerator, get_min_available
from .utils.validation import SecurityValidator, sanitize_secret_value


class RedisFailoverServer:
    """
    MCP Server для Redis Failover Generator
    Предоставляет tools для генерации StatefulSet'ов, Service'ов и конфигов
    """

    def __init__(self):
        self.server = Server("redis-failover-generator")
        self.generator = FailoverGenerator()
        self.templates = ConfigTemplateEngine()
        logger.info("✅ Все компоненты инициализированы")

        # Регистрация tools
        self._register_tools()

    def _register_tools(self):
        """Регистрация MCP tools"""

        @self.server.list_tools()
        async def list_tools() -> List[types.Tool]:
            """Список доступных tools"""
            return [
                types.Tool(
                    name="generate_redis_failover",
                    description=(
                        "Генерирует Kubernetes объекты для RedisFailover: "
                        "StatefulSet'ы redis и sentinel, Service'ы, ConfigMap'ы, "
                        "PodDisruptionBudget'ы и опциональный Deployment predixy."
                    ),
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "manifest": {
                                "type": "string",
                                "description": "YAML ресурса RedisFailover (apiVersion/kind/metadata/spec), metadata.uid обязателен"
                            },
                            "sentinels": {
                                "type": "array",
                                "items": {"type": "string"},
                                "description": "Явные адреса sentinel для predixy (host:port)"
                            },
                            "credentials": {
                                "type": "object",
                                "description": "Учетные данные (по умолчанию placeholders)"
                            },
                            "output_dir": {
                                "type": "string",
                                "description": "Директория для сохранения манифестов (по умолчанию: ./output)",
                                "default": "./output"
                            }
                        },
                        "required": ["manifest"]
                    }
                ),

                types.Tool(
                    name="render_failover_configs",
                    description=(
                        "Рендерит конфиги redis.conf, sentinel.conf, скрипты "
                        "shutdown/readiness и конфиги predixy без генерации объектов."
                    ),
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "manifest": {
                                "type": "string",
                                "description": "YAML ресурса RedisFailover"
                            }
                        },
                        "required": ["manifest"]
                    }
                ),

                types.Tool(
                    name="compute_quorum",
                    description=(
                        "Вычисляет кворум sentinel и minAvailable для "
                        "PodDisruptionBudget по числу реплик."
                    ),
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "sentinel_replicas": {
                                "type": "integer",
                                "description": "Количество реплик sentinel",
                                "minimum": 1
                            },
                            "redis_replicas": {
                                "type": "integer",
                                "description": "Количество реплик redis (по умолчанию: 3)",
                                "minimum": 1,
                                "default": 3
                            }
                        },
                        "required": ["sentinel_replicas"]
                    }
                ),
            ]

        @self.server.call_tool()
        async def call_tool(
            name: str,
            arguments: Dict[str, Any]
        ) -> List[types.TextContent]:
            """Обработка вызова tool"""

            try:
                logger.info(f"🔧 Вызов tool: {name}")

                # Маршрутизация на соответствующий обработчик
                if name == "generate_redis_failover":
                    result = await self._handle_generate(arguments)
                elif name == "render_failover_configs":
                    result = await self._handle_render_configs(arguments)
                elif name == "compute_quorum":
                    result = await self._handle_compute_quorum(arguments)
                else:
                    result = f"❌ Неизвестный tool: {name}"

                return [types.TextContent(type="text", text=result)]

            except ValueError as e:
                logger.error(f"❌ Ошибка валидации при выполнении tool {name}: {e}")
                return [types.TextContent(
                    type="text",
                    text=f"❌ Ошибка валидации: {str(e)}\n\nПроверьте входные параметры."
                )]
            except RuntimeError as e:
                logger.error(f"❌ Runtime ошибка при выполнении tool {name}: {e}")
                return [types.TextContent(
                    type="text",
                    text=f"❌ Runtime ошибка: {str(e)}\n\nПопробуйте повторить запрос или проверьте конфигурацию."
                )]
            except Exception as e:
                logger.error(f"❌ Критическая ошибка при выполнении tool {name}: {e}", exc_info=True)
                return [types.TextContent(
                    type="text",
                    text=f"❌ Критическая ошибка: {str(e)}\n\nПодробности в логах.\n\nТип ошибки: {type(e).__name__}"
                )]

    def _validate_output_dir(self, output_dir: str) -> Path:
        """Валидация output директории (защита от path traversal)"""
        output_path = Path(output_dir).resolve()
        project_root = Path.cwd().resolve()

        # Проверка что путь не выходит за пределы проекта
        if output_path != project_root and project_root not in output_path.parents:
            raise ValueError(f"Output directory must be within project: {output_dir}")

        return output_path

    def _parse_manifest(self, args: Dict[str, Any]) -> TopologySpec:
        manifest = args.get("manifest", "")
        if not manifest or not manifest.strip():
            raise ValueError("RedisFailover manifest cannot be empty")
        return TopologySpec.from_yaml(manifest)

    def _parse_credentials(self, args: Dict[str, Any]) -> Optional[Credentials]:
        raw = args.get("credentials")
        if not raw:
            return None

        credentials = Credentials.model_validate(raw)
        for field_name in ("redis_password", "proxy_read_password", "proxy_admin_password"):
            value = getattr(credentials, field_name)
            if not SecretsConfig.is_placeholder(value):
                logger.info(f"🔑 {field_name}: {sanitize_secret_value(value)}")
        return credentials

    async def _handle_generate(self, args: Dict[str, Any]) -> str:
        """Обработка генерации объектов RedisFailover"""
        spec = self._parse_manifest(args)
        credentials = self._parse_credentials(args)
        output_path = self._validate_output_dir(args.get("output_dir", OutputConfig.OUTPUT_DIR))

        logger.info(f"📦 Генерация RedisFailover {spec.namespace}/{spec.name}")

        graph = self.generator.generate(spec, credentials, args.get("sentinels"))
        manifests = graph.to_manifests()

        # Сохраняем манифесты
        output_path.mkdir(parents=True, exist_ok=True)

        saved_files = []
        for filename, content in manifests.items():
            # Валидация YAML перед сохранением
            if OutputConfig.VALIDATE_YAML and filename.endswith('.yaml'):
                try:
                    list(yaml.safe_load_all(content))
                    logger.debug(f"✅ YAML валидация пройдена: {filename}")
                except yaml.YAMLError as e:
                    logger.error(f"❌ Невалидный YAML в {filename}: {e}")
                    raise RuntimeError(f"Generated invalid YAML in {filename}: {e}") from e

            file_path = output_path / filename
            file_path.write_text(content, encoding=OutputConfig.FILE_ENCODING)
            saved_files.append(str(file_path))
            logger.info(f"✅ Сохранен: {file_path}")

        security = SecurityValidator.validate_objects(graph.objects())

        # Формируем ответ
        response = f"✅ RedisFailover {spec.namespace}/{spec.name} сгенерирован!\n\n"
        response += f"🔢 Redis реплики: {spec.redis.replicas}\n"
        response += f"🛡️ Sentinel реплики: {spec.sentinel.replicas} (кворум: {get_quorum(spec)})\n"
        response += f"🔀 Predixy: {'включен' if spec.predixy.enabled else 'выключен'}\n\n"
        response += f"📁 Сохранено файлов: {len(saved_files)}\n"
        for file in saved_files:
            response += f"   • {file}\n"

        if security['warnings']:
            response += f"\n⚠️ Предупреждения безопасности:\n"
            for warning in security['warnings']:
                response += f"   • {warning}\n"

        response += f"\n💡 Что дальше:\n"
        response += f"1. Валидация: kubectl apply --dry-run=client -f {output_path}/\n"
        response += f"2. Деплой: kubectl apply -f {output_path}/\n"

        return response

    async def _handle_render_configs(self, args: Dict[str, Any]) -> str:
        """Рендеринг конфигов без сохранения"""
        spec = self._parse_manifest(args)

        response = f"📄 Конфиги RedisFailover {spec.namespace}/{spec.name}\n"
        for artifact in self.templates.render_all(spec):
            response += f"\n### {artifact.role}/{artifact.filename}\n"
            response += f"```\n{artifact.rendered_text}```\n"

        return response

    async def _handle_compute_quorum(self, args: Dict[str, Any]) -> str:
        """Кворум sentinel и minAvailable по числу реплик"""
        sentinel_replicas = args.get("sentinel_replicas")
        redis_replicas = args.get("redis_replicas", 3)

        for field_name, value in (("sentinel_replicas", sentinel_replicas), ("redis_replicas", redis_replicas)):
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{field_name} must be a positive integer, got {value!r}")

        spec = TopologySpec.from_dict({
            "metadata": {"name": "quorum"},
            "redis": {"replicas": redis_replicas},
            "sentinel": {"replicas": sentinel_replicas},
        })

        response = f"🛡️ Sentinel реплики: {sentinel_replicas}\n"
        response += f"   • Кворум: {get_quorum(spec)}\n"
        response += f"   • minAvailable: {get_min_available(sentinel_replicas)}\n"
        response += f"🔢 Redis реплики: {redis_replicas}\n"
        response += f"   • minAvailable: {get_min_available(redis_replicas)}\n"

        return response

    async def run(self):
        """Запуск MCP сервера"""
        logger.info("🚀 Запуск Redis Failover Generator MCP Server...")
        logger.info(f"📍 Версия: 1.0.0")

        async with stdio_server() as (read_stream, write_stream):
            logger.info("✅ MCP Server запущен и готов к работе!")
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options()
            )


async def main():
    """Главная функция"""
    try:
        server = RedisFailoverServer()
        await server.run()
    except KeyboardInterrupt:
        logger.info("\n👋 Остановка сервера...")
    except Exception as e:
        logger.error(f"❌ Критическая ошибка: {e}", exc_info=True)
        sys.exit(1)


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
