"""Unit tests for the saver: resource lookup, tunables, API binding and dispatch."""

from __future__ import annotations

import io
import json
import zipfile
from collections.abc import Callable
from pathlib import Path
from types import ModuleType, SimpleNamespace

import pytest

from daffodil_bin.saver import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    EXIT_USAGE,
    ApiBindingError,
    DaffodilApi,
    Diagnostic,
    ResourceSchemaRef,
    UnsupportedGenerationError,
    UriSchemaRef,
    find_resource,
    read_tunables,
    run,
    schema_ref,
)

SCHEMA = "/com/example/format.dfdl.xsd"

TUNABLES_XML = """\
<dfdlConfig xmlns="urn:ogf:dfdl:2013:imp:daffodil.apache.org:2018:ext">
  <tunables>
    <maxOccursBounds>1024</maxOccursBounds>
    <!-- comments are skipped -->
    <unqualifiedPathStepPolicy> preferDefaultNamespace </unqualifiedPathStepPolicy>
  </tunables>
  <externalVariableBindings>
    <bind name="x">1</bind>
  </externalVariableBindings>
</dfdlConfig>
"""


class TestFindResource:
    """Tests for class-loader style resource lookup."""

    def test_directory_hit(self, schema_dir: Path) -> None:
        resource = find_resource(SCHEMA, [str(schema_dir)])
        assert resource is not None
        assert resource.entry == schema_dir
        assert resource.uri.startswith("file://")
        assert resource.uri.endswith("/com/example/format.dfdl.xsd")

    def test_archive_hit(self, tmp_path: Path) -> None:
        archive = tmp_path / "schemas.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("com/example/format.dfdl.xsd", "<xs:schema/>")

        resource = find_resource(SCHEMA, [str(archive)])

        assert resource is not None
        assert resource.uri == f"jar:{archive.resolve().as_uri()}!/com/example/format.dfdl.xsd"

    def test_first_entry_wins(self, schema_dir: Path, tmp_path: Path) -> None:
        other = tmp_path / "other"
        (other / "com" / "example").mkdir(parents=True)
        (other / "com" / "example" / "format.dfdl.xsd").write_text("<xs:schema/>")

        resource = find_resource(SCHEMA, [str(other), str(schema_dir)])

        assert resource is not None
        assert resource.entry == other

    def test_missing(self, tmp_path: Path) -> None:
        assert find_resource(SCHEMA, ["", str(tmp_path), str(tmp_path / "nope")]) is None

    def test_root_only_name(self, schema_dir: Path) -> None:
        assert find_resource("/", [str(schema_dir)]) is None


class TestReadTunables:
    """Tests for reading the tunables section of a config file."""

    def test_reads_in_document_order(self, tmp_path: Path) -> None:
        config = tmp_path / "cfg.xml"
        config.write_text(TUNABLES_XML)
        assert read_tunables(config) == [
            ("maxOccursBounds", "1024"),
            ("unqualifiedPathStepPolicy", "preferDefaultNamespace"),
        ]

    def test_no_tunables(self, tmp_path: Path) -> None:
        config = tmp_path / "cfg.xml"
        config.write_text("<dfdlConfig/>")
        assert read_tunables(config) == []


class TestSchemaRef:
    """Tests for generation specific schema references."""

    def test_generation_1_uses_uri(self, schema_dir: Path) -> None:
        resource = find_resource(SCHEMA, [str(schema_dir)])
        assert resource is not None
        ref = schema_ref(1, resource)
        assert isinstance(ref, UriSchemaRef)
        assert ref.argument == resource.uri

    def test_generation_2_uses_resource_name(self, schema_dir: Path) -> None:
        resource = find_resource(SCHEMA, [str(schema_dir)])
        assert resource is not None
        ref = schema_ref(2, resource)
        assert isinstance(ref, ResourceSchemaRef)
        assert ref.argument == SCHEMA

    def test_unknown_generation(self, schema_dir: Path) -> None:
        resource = find_resource(SCHEMA, [str(schema_dir)])
        assert resource is not None
        with pytest.raises(UnsupportedGenerationError):
            schema_ref(3, resource)

    def test_compile_calls_generation_method(self) -> None:
        calls: list[tuple[object, ...]] = []
        compiler = SimpleNamespace(compile_resource=lambda *args: calls.append(args) or "factory")

        assert ResourceSchemaRef(SCHEMA).compile(compiler, "record") == "factory"
        assert calls == [(SCHEMA, "record", None)]

    def test_missing_method(self) -> None:
        with pytest.raises(ApiBindingError, match="compile_source"):
            UriSchemaRef("file:///x.xsd").compile(SimpleNamespace(), None)


class TestDiagnostic:
    """Tests for diagnostic rendering."""

    def test_rendering(self) -> None:
        assert str(Diagnostic("bad", is_error=True)) == "[error] bad"
        assert str(Diagnostic("meh", is_error=False)) == "[warning] meh"


class TestRun:
    """Tests for the saver pipeline against a fake library."""

    @pytest.fixture
    def save(
        self,
        schema_dir: Path,
        load_fake_api: Callable[[str], ModuleType],
    ) -> Callable[..., tuple[int, str]]:
        def _save(version: str, args: list[str]) -> tuple[int, str]:
            module = load_fake_api(version)
            err = io.StringIO()
            code = run(
                args,
                api_loader=lambda: DaffodilApi(module),
                search_path=[str(schema_dir)],
                err=err,
            )
            return code, err.getvalue()

        return _save

    def test_generation_2_success(self, save: Callable[..., tuple[int, str]], tmp_path: Path) -> None:
        output = tmp_path / "out.bin"
        code, err = save("3.9.0", ["2", SCHEMA, str(output), "record", ""])

        assert code == EXIT_SUCCESS
        assert err == ""
        record = json.loads(output.read_bytes())
        assert record["source"] == SCHEMA
        assert record["root"] == "record"
        assert record["path"] == "/"

    def test_generation_1_compiles_from_uri(
        self, save: Callable[..., tuple[int, str]], tmp_path: Path
    ) -> None:
        output = tmp_path / "out.bin"
        code, _ = save("3.8.0", ["1", SCHEMA, str(output), "", ""])

        assert code == EXIT_SUCCESS
        record = json.loads(output.read_bytes())
        assert record["source"].startswith("file://")
        assert record["root"] is None

    def test_wrong_generation_for_library(
        self, save: Callable[..., tuple[int, str]], tmp_path: Path
    ) -> None:
        # 3.8.0 only offers compile_source
        with pytest.raises(ApiBindingError):
            save("3.8.0", ["2", SCHEMA, str(tmp_path / "out.bin"), "", ""])

    def test_tunables_applied_in_order(
        self, save: Callable[..., tuple[int, str]], tmp_path: Path
    ) -> None:
        config = tmp_path / "cfg.xml"
        config.write_text(TUNABLES_XML)
        output = tmp_path / "out.bin"

        code, _ = save("3.10.0", ["2", SCHEMA, str(output), "", str(config)])

        assert code == EXIT_SUCCESS
        assert json.loads(output.read_bytes())["tunables"] == [
            ["maxOccursBounds", "1024"],
            ["unqualifiedPathStepPolicy", "preferDefaultNamespace"],
        ]

    def test_missing_schema(self, save: Callable[..., tuple[int, str]], tmp_path: Path) -> None:
        output = tmp_path / "out.bin"
        code, err = save("3.10.0", ["2", "/com/example/missing.xsd", str(output), "", ""])

        assert code == EXIT_FAILURE
        assert "failed to find schema resource: /com/example/missing.xsd" in err
        assert not output.exists()

    def test_factory_error(self, save: Callable[..., tuple[int, str]], tmp_path: Path) -> None:
        code, err = save("3.10.0", ["2", SCHEMA, str(tmp_path / "out.bin"), "bad", ""])
        assert code == EXIT_FAILURE
        assert "[error] Schema Definition Error: bad root" in err

    def test_warning_does_not_fail(
        self, save: Callable[..., tuple[int, str]], tmp_path: Path
    ) -> None:
        output = tmp_path / "out.bin"
        code, err = save("3.10.0", ["2", SCHEMA, str(output), "warn", ""])
        assert code == EXIT_SUCCESS
        assert "[warning] Schema Definition Warning: facet ignored" in err
        assert output.stat().st_size > 0

    def test_processor_error(self, save: Callable[..., tuple[int, str]], tmp_path: Path) -> None:
        code, err = save("3.10.0", ["2", SCHEMA, str(tmp_path / "out.bin"), "badproc", ""])
        assert code == EXIT_FAILURE
        assert "[error] Runtime Schema Definition Error: processor" in err

    def test_unreadable_config(self, save: Callable[..., tuple[int, str]], tmp_path: Path) -> None:
        config = tmp_path / "cfg.xml"
        config.write_text("<dfdlConfig><tunables>")
        code, err = save("3.10.0", ["2", SCHEMA, str(tmp_path / "out.bin"), "", str(config)])
        assert code == EXIT_FAILURE
        assert "failed to load config file" in err

    @pytest.mark.parametrize("args", [[], ["2", SCHEMA, "out.bin", ""], ["2"] * 6])
    def test_wrong_argument_count(self, args: list[str]) -> None:
        err = io.StringIO()
        assert run(args, err=err) == EXIT_USAGE
        assert "usage:" in err.getvalue()

    def test_non_integer_generation(self) -> None:
        err = io.StringIO()
        assert run(["two", SCHEMA, "out.bin", "", ""], err=err) == EXIT_USAGE

    def test_unsupported_generation(self, schema_dir: Path, tmp_path: Path) -> None:
        err = io.StringIO()
        code = run(
            ["7", SCHEMA, str(tmp_path / "out.bin"), "", ""],
            search_path=[str(schema_dir)],
            err=err,
        )
        assert code == EXIT_USAGE
        assert "unsupported API generation 7" in err.getvalue()
