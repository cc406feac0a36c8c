"""
JSON Schema Contract Validators

Модуль для валидации JSON данных согласно формальным JSON Schema контрактам.
Использует библиотеку jsonschema для проверки соответствия данных схемам.

Схемы (src/core/contracts/schema/):
- accumulator_snapshot.json — снапшот cumulative accumulators
- oracle_updated.json — событие Updated
- sentry_event.json — события администрирования sentry
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
from jsonschema import Draft202012Validator, ValidationError


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы поставляются вместе с пакетом в каталоге schema/ рядом с модулем.
    """

    def __init__(self, schema_dir: Optional[Path] = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'oracle_updated')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если файл не является валидной JSON Schema
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Валидируем саму схему (meta-validation)
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()

# Кэш валидаторов по имени схемы
_VALIDATORS: Dict[str, "ContractValidator"] = {}


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    def __init__(self, schema_name: str):
        """
        Args:
            schema_name: Имя схемы для валидации
        """
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация данных против схемы.

        Raises:
            ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Проверка валидности данных без exception."""
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """Итератор по всем ошибкам валидации."""
        return self.validator.iter_errors(data)


class AccumulatorSnapshotValidator(ContractValidator):
    """Валидатор для accumulator_snapshot контракта."""

    def __init__(self):
        super().__init__("accumulator_snapshot")


class OracleUpdatedValidator(ContractValidator):
    """Валидатор для события Updated."""

    def __init__(self):
        super().__init__("oracle_updated")


class SentryEventValidator(ContractValidator):
    """Валидатор для событий sentry."""

    def __init__(self):
        super().__init__("sentry_event")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def _validator_for(schema_name: str) -> ContractValidator:
    validator = _VALIDATORS.get(schema_name)
    if validator is None:
        validator = ContractValidator(schema_name)
        _VALIDATORS[schema_name] = validator
    return validator


def validate_event(schema_name: str, data: Dict[str, Any]) -> None:
    """
    Валидация payload события по имени схемы.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    _validator_for(schema_name).validate(data)


def validate_accumulator_snapshot(data: Dict[str, Any]) -> None:
    """
    Валидация accumulator_snapshot данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    _validator_for("accumulator_snapshot").validate(data)


def validate_oracle_updated(data: Dict[str, Any]) -> None:
    """
    Валидация события Updated.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    _validator_for("oracle_updated").validate(data)


def validate_sentry_event(data: Dict[str, Any]) -> None:
    """
    Валидация событий sentry.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    _validator_for("sentry_event").validate(data)

