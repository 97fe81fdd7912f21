"""
Исключения генератора
"""


class SpecValidationError(ValueError):
    """Невалидная спецификация RedisFailover (отклоняется до генерации объектов)"""


class TemplateRenderError(RuntimeError):
    """Дефект встроенного шаблона конфигурации (внутренняя ошибка)"""

    def __init__(self, template_name: str, message: str):
        self.template_name = template_name
        super().__init__(f"Failed to render template '{template_name}': {message}")
