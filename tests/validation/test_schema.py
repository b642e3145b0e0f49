"""Tests for Dto parsing and schema aggregation."""

from __future__ import annotations

import pytest

from fieldspec.validation import (
    Dto,
    ValidationConfig,
    ValidationError,
    ValidationMode,
    number_field,
    string_field,
    string_field_optional,
    translations_field,
    translations_field_optional,
    uuid_field,
)
from tests.conftest import (
    VALID_TITLES,
    BaseEntityDto,
    CreateProductDto,
    NamedEntityDto,
    StrictDto,
    TitleTranslationDto,
    valid_product,
)


class CollectAllDto(Dto):
    _validation_config = ValidationConfig(mode=ValidationMode.COLLECT_ALL, max_errors=2)

    a = number_field(minimum=10, is_int=True)
    b = string_field()
    c = uuid_field()


class TestParse:
    def test_valid_payload(self) -> None:
        product = CreateProductDto.parse(valid_product(name="  Lamp "))
        assert product.name == "Lamp"
        assert product.price == 12.5
        assert product.color is None
        assert [t.to_dict() for t in product.titles] == VALID_TITLES

    def test_unknown_keys_are_ignored_by_default(self) -> None:
        product = CreateProductDto.parse(valid_product(sku="X-1"))
        assert not hasattr(product, "sku")

    def test_missing_required_field(self) -> None:
        payload = valid_product()
        del payload["name"]
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(payload)
        failure = exc_info.value.first_error
        assert (failure.field, failure.rule) == ("name", "required")

    def test_explicit_null_counts_as_absent(self) -> None:
        assert CreateProductDto.parse(valid_product(color=None)).color is None
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(valid_product(name=None))
        assert exc_info.value.first_error.rule == "required"

    def test_fail_fast_reports_one_failure(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(valid_product(name="x" * 11, price="free"))
        assert len(exc_info.value.failures) == 1
        assert exc_info.value.mode == ValidationMode.FAIL_FAST

    def test_collect_all_reports_every_field(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(valid_product(name="x" * 11, price="free"), mode="collect_all")
        assert [(f.field, f.rule) for f in exc_info.value.failures] == [
            ("name", "max_length"),
            ("price", "coerce_number"),
        ]

    def test_class_config_mode_and_cap(self) -> None:
        _, failures = CollectAllDto.collect_failures({"a": 5.5})
        assert [(f.field, f.rule) for f in failures] == [("a", "is_int"), ("a", "min")]

    def test_explicit_mode_overrides_class_config(self) -> None:
        _, failures = CollectAllDto.collect_failures({"a": 5.5}, ValidationMode.FAIL_FAST)
        assert len(failures) == 1

    def test_mode_from_settings(self, reset_settings: pytest.MonkeyPatch) -> None:
        reset_settings.setenv("VALIDATION_MODE", "collect_all")
        _, failures = CreateProductDto.collect_failures({})
        assert [f.field for f in failures] == ["name", "price", "titles"]

    def test_non_mapping_payload(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(["not", "an", "object"])
        failure = exc_info.value.first_error
        assert (failure.field, failure.rule) == ("$", "object")

    def test_nested_failure_paths(self) -> None:
        titles = [VALID_TITLES[0], {"language_code": "fr_FR", "title": "Lampe"}]
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(valid_product(titles=titles))
        failure = exc_info.value.first_error
        assert failure.path == "titles[1]"
        assert [(leaf.field, leaf.rule) for leaf in failure.flatten()] == [("titles[1].language_code", "is_enum")]

    def test_parse_result(self) -> None:
        assert CreateProductDto.parse_result(valid_product()).is_ok()
        result = CreateProductDto.parse_result({})
        assert result.is_err()
        assert isinstance(result.unwrap_err(), ValidationError)


class TestSensitiveFields:
    def test_password_is_redacted_everywhere(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(valid_product(password="bad pass"))
        error = exc_info.value
        assert error.first_error.value == "[REDACTED]"
        assert "bad pass" not in str(error.to_dict())
        assert "bad pass" not in str(error.to_app_error().to_dict())

    def test_repr_hides_password(self) -> None:
        product = CreateProductDto.parse(valid_product(password="Secr3t!"))
        assert product.password == "Secr3t!"
        assert "Secr3t!" not in repr(product)
        assert "password=[REDACTED]" in repr(product)


class TestStrictDto:
    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            StrictDto.parse({"name": "a", "extra": 1})
        failure = exc_info.value.first_error
        assert (failure.field, failure.rule) == ("extra", "unknown_field")

    def test_schema_forbids_additional_properties(self) -> None:
        assert StrictDto.json_schema()["additionalProperties"] is False


class TestInheritance:
    def test_inherited_fields(self) -> None:
        assert list(NamedEntityDto.fields()) == ["id", "label"]
        assert list(BaseEntityDto.fields()) == ["id"]

    def test_parse_subclass(self) -> None:
        entity = NamedEntityDto.parse({"id": "1", "label": "main"})
        assert entity.label == "MAIN"
        assert entity == NamedEntityDto(id="1", label="MAIN")
        assert entity.to_dict() == {"id": "1", "label": "MAIN"}


class TestJsonSchema:
    def test_product_schema(self) -> None:
        schema = CreateProductDto.json_schema()
        assert schema["title"] == "CreateProductDto"
        assert schema["type"] == "object"
        assert schema["required"] == ["name", "price", "titles"]
        assert schema["properties"]["name"] == {"type": "string", "maxLength": 10}
        assert schema["properties"]["titles"]["items"] == {"$ref": "#/$defs/TitleTranslationDto"}
        assert schema["properties"]["password"]["format"] == "password"

    def test_nested_definitions(self) -> None:
        definition = CreateProductDto.json_schema()["$defs"]["TitleTranslationDto"]
        assert definition["required"] == ["language_code", "title"]
        assert definition["properties"]["language_code"]["enum"] == ["en_US", "ru_RU"]

    def test_hidden_fields_are_omitted(self) -> None:
        class PartlyHiddenDto(Dto):
            shown = string_field()
            hidden = string_field_optional(swagger=False)

        assert list(PartlyHiddenDto.json_schema()["properties"]) == ["shown"]
        assert PartlyHiddenDto.parse({"shown": "a", "hidden": " b "}).hidden == "b"


class RankedTitleDto(Dto):
    title = string_field(to_lower_case=True)
    rank = number_field(is_int=True)


class RankedHolderDto(Dto):
    titles = translations_field(lambda: RankedTitleDto, language_count=1)


class CollectingTitleDto(Dto):
    _validation_config = ValidationConfig(mode=ValidationMode.COLLECT_ALL)

    title = string_field(max_length=3)
    rank = number_field(minimum=1)


class CollectingHolderDto(Dto):
    titles = translations_field(lambda: CollectingTitleDto, language_count=1)


class NodeDto(Dto):
    label = string_field()
    children = translations_field_optional(lambda: NodeDto, language_count=1)


class ChapterDto(Dto):
    sections = translations_field_optional(lambda: SectionDto, language_count=1)


class SectionDto(Dto):
    chapters = translations_field_optional(lambda: ChapterDto, language_count=1)


class TestNestedElements:
    def test_elements_become_nested_instances(self) -> None:
        holder = RankedHolderDto.parse({"titles": [{"title": "  HELLO  ", "rank": "3"}]})
        element = holder.titles[0]
        assert isinstance(element, RankedTitleDto)
        assert element.title == "hello"
        assert element.rank == 3
        assert holder.to_dict() == {"titles": [{"title": "hello", "rank": 3}]}

    def test_instances_are_accepted(self) -> None:
        element = RankedTitleDto.parse({"title": "Hi", "rank": 1})
        assert RankedHolderDto.parse({"titles": [element]}).titles == [element]

    def test_invalid_elements_are_reported_not_converted(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RankedHolderDto.parse({"titles": [{"title": "hi", "rank": "x"}]})
        assert [(leaf.field, leaf.rule) for leaf in exc_info.value.first_error.flatten()] == [
            ("titles[0].rank", "coerce_number"),
        ]

    def test_length_failure_value_is_plain(self) -> None:
        holder_input = {"titles": [{"title": "a", "rank": 1}, {"title": "b", "rank": 2}]}
        with pytest.raises(ValidationError) as exc_info:
            RankedHolderDto.parse(holder_input)
        failure = exc_info.value.first_error
        assert failure.rule == "array_max_size"
        assert failure.value == [{"title": "a", "rank": 1}, {"title": "b", "rank": 2}]

    def test_collect_all_reaches_nested_fields(self) -> None:
        titles = [{"language_code": "fr_FR", "title": "x" * 21}, VALID_TITLES[1]]
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(valid_product(titles=titles), mode="collect_all")
        failure = exc_info.value.first_error
        assert [(leaf.field, leaf.rule) for leaf in failure.flatten()] == [
            ("titles[0].language_code", "is_enum"),
            ("titles[0].title", "max_length"),
        ]

    def test_fail_fast_stops_at_first_nested_field(self) -> None:
        titles = [{"language_code": "fr_FR", "title": "x" * 21}, VALID_TITLES[1]]
        with pytest.raises(ValidationError) as exc_info:
            CreateProductDto.parse(valid_product(titles=titles), mode="fail_fast")
        assert len(exc_info.value.first_error.children) == 1

    def test_caller_mode_overrides_nested_config(self) -> None:
        payload = {"titles": [{"title": "toolong", "rank": 0}]}
        with pytest.raises(ValidationError) as exc_info:
            CollectingHolderDto.parse(payload, mode=ValidationMode.FAIL_FAST)
        assert [c.rule for c in exc_info.value.first_error.children] == ["max_length"]

        with pytest.raises(ValidationError) as exc_info:
            CollectingHolderDto.parse(payload, mode=ValidationMode.COLLECT_ALL)
        assert [c.rule for c in exc_info.value.first_error.children] == ["max_length", "min"]

    def test_self_referencing_parse(self) -> None:
        node = NodeDto.parse({"label": "root", "children": [{"label": " leaf "}]})
        assert node.children[0].label == "leaf"
        assert node.children[0].children is None


class TestCircularSchemas:
    def test_self_reference(self) -> None:
        schema = NodeDto.json_schema()
        ref = {"$ref": "#/$defs/NodeDto"}
        assert schema["properties"]["children"]["items"] == ref
        assert list(schema["$defs"]) == ["NodeDto"]
        definition = schema["$defs"]["NodeDto"]
        assert definition["properties"]["children"]["items"] == ref
        assert "$defs" not in definition

    def test_mutual_reference(self) -> None:
        schema = ChapterDto.json_schema()
        assert set(schema["$defs"]) == {"SectionDto", "ChapterDto"}
        assert schema["$defs"]["SectionDto"]["properties"]["chapters"]["items"] == {"$ref": "#/$defs/ChapterDto"}

    def test_shared_nested_type_rendered_once(self) -> None:
        class BilingualDto(Dto):
            titles = translations_field(lambda: TitleTranslationDto, language_count=2)
            subtitles = translations_field(lambda: TitleTranslationDto, language_count=2)

        assert list(BilingualDto.json_schema()["$defs"]) == ["TitleTranslationDto"]
