from __future__ import annotations

from typing import Any

import pytest

from flight_manifest.build.assets import render_manifest_json
from flight_manifest.build.async_modules import AsyncClientModules
from flight_manifest.build.builder import ManifestBuilder, build_manifest
from flight_manifest.config import ManifestConfig
from flight_manifest.errors import ManifestInvariantError
from flight_manifest.schemas.graph import BuildGraph
from flight_manifest.schemas.manifest import ManifestKey


def _config(**overrides: Any) -> ManifestConfig:
    payload: dict[str, Any] = {"dev": True, "app_dir": "/project/app", "context": "/project"}
    payload.update(overrides)
    return ManifestConfig(**payload)


def _client_module(identifier: str, resource: str, module_id: Any = 1, **fields: Any) -> dict[str, Any]:
    module: dict[str, Any] = {
        "identifier": identifier,
        "id": module_id,
        "resource": resource,
        "layer": "app-client",
        "rsc": {"type": "client"},
    }
    module.update(fields)
    return module


def _graph(
    chunks: list[dict[str, Any]],
    groups: list[dict[str, Any]],
    modules: list[dict[str, Any]],
) -> BuildGraph:
    return BuildGraph.model_validate({"chunks": chunks, "chunk_groups": groups, "modules": modules})


def _single_page_graph(resource: str = "./comp.js", **module_fields: Any) -> BuildGraph:
    return _graph(
        chunks=[{"id": 1, "name": "main", "hash": "abc123", "files": ["static/chunks/main.js"], "modules": ["comp"]}],
        groups=[{"name": "app/page", "chunks": [1]}],
        modules=[_client_module("comp", resource, 42, provided_exports=["Foo"], **module_fields)],
    )


def test_single_client_module_records_namespace_default_and_named_exports() -> None:
    manifest = build_manifest(_single_page_graph(), _config()).manifest

    namespace = manifest.get(ManifestKey("./comp.js"))
    anonymous = manifest.get(ManifestKey("./comp.js", ""))
    named = manifest.get(ManifestKey("./comp.js", "Foo"))

    assert [str(key) for key in manifest.records] == ["./comp.js", "./comp.js#", "./comp.js#Foo"]
    assert namespace is not None and namespace.name == "*"
    assert anonymous is not None and anonymous.name == ""
    assert named is not None and named.name == "Foo"
    for record in (namespace, anonymous, named):
        assert record.id == "42"
        assert record.chunks == ["1:main"]
        assert record.is_async is False
    assert manifest.ssr_module_mapping == {}
    assert manifest.edge_ssr_module_mapping == {}


def test_production_chunks_carry_hash_suffix() -> None:
    manifest = build_manifest(_single_page_graph(), _config(dev=False)).manifest

    assert manifest.get(ManifestKey("./comp.js", "Foo")).chunks == ["1:main-abc123"]


def test_chunk_name_falls_back_to_chunk_id() -> None:
    graph = _graph(
        chunks=[{"id": 7, "hash": "ff", "modules": ["comp"]}],
        groups=[{"name": "app/page", "chunks": [7]}],
        modules=[_client_module("comp", "/project/app/comp.js")],
    )

    manifest = build_manifest(graph, _config()).manifest

    assert manifest.get(ManifestKey("/project/app/comp.js")).chunks == ["7:7"]


def test_system_entrypoint_chunks_are_not_required() -> None:
    graph = _graph(
        chunks=[
            {"id": "main-app", "name": "main-app", "hash": "00", "modules": []},
            {"id": "webpack", "name": "react-refresh", "hash": "01", "modules": []},
            {"id": 3, "name": "app/page", "hash": "02", "modules": ["comp"]},
        ],
        groups=[{"name": "app/page", "chunks": ["main-app", "webpack", 3]}],
        modules=[_client_module("comp", "/project/app/comp.js")],
    )

    manifest = build_manifest(graph, _config()).manifest

    assert manifest.get(ManifestKey("/project/app/comp.js")).chunks == ["3:app/page"]


@pytest.mark.parametrize("order", [("app/page", "pages/_app"), ("pages/_app", "app/page")])
def test_app_group_wins_named_export_regardless_of_order(order: tuple[str, str]) -> None:
    group_chunks = {"app/page": 1, "pages/_app": 2}
    graph = _graph(
        chunks=[
            {"id": 1, "name": "app-chunk", "hash": "a", "modules": ["comp"]},
            {"id": 2, "name": "pages-chunk", "hash": "b", "modules": ["comp"]},
        ],
        groups=[{"name": name, "chunks": [group_chunks[name]]} for name in order],
        modules=[_client_module("comp", "/project/app/comp.js", provided_exports=["Foo"])],
    )

    manifest = build_manifest(graph, _config()).manifest

    assert manifest.get(ManifestKey("/project/app/comp.js", "Foo")).chunks == ["1:app-chunk"]


def test_namespace_record_follows_latest_group() -> None:
    graph = _graph(
        chunks=[
            {"id": 1, "name": "app-chunk", "modules": ["comp"]},
            {"id": 2, "name": "pages-chunk", "modules": ["comp"]},
        ],
        groups=[
            {"name": "app/page", "chunks": [1]},
            {"name": "pages/_app", "chunks": [2]},
        ],
        modules=[_client_module("comp", "/project/app/comp.js", provided_exports=["Foo"])],
    )

    manifest = build_manifest(graph, _config()).manifest

    assert manifest.get(ManifestKey("/project/app/comp.js")).chunks == ["2:pages-chunk"]
    assert manifest.get(ManifestKey("/project/app/comp.js", "")).chunks == ["2:pages-chunk"]


def test_later_app_group_overrides_earlier_app_group() -> None:
    graph = _graph(
        chunks=[
            {"id": 1, "name": "first", "modules": ["comp"]},
            {"id": 2, "name": "second", "modules": ["comp"]},
        ],
        groups=[
            {"name": "app/page", "chunks": [1]},
            {"name": "app/other/page", "chunks": [2]},
        ],
        modules=[_client_module("comp", "/project/app/comp.js", provided_exports=["Foo"])],
    )

    manifest = build_manifest(graph, _config()).manifest

    assert manifest.get(ManifestKey("/project/app/comp.js", "Foo")).chunks == ["2:second"]


def test_stylesheet_chunks_are_merged_without_duplicates() -> None:
    css_identifier = "css /project/node_modules/css-loader/index.js!/project/app/globals.css"
    graph = _graph(
        chunks=[
            {"id": 1, "files": ["static/css/a.css", "static/css/b.css", "static/chunks/1.js"], "modules": [css_identifier]},
            {"id": 2, "files": ["static/css/b.css", "static/css/c.css"], "modules": [css_identifier]},
        ],
        groups=[
            {"name": "app/page", "chunks": [1]},
            {"name": "app/about/page", "chunks": [2]},
        ],
        modules=[{"identifier": css_identifier, "id": 9, "type": "css/mini-extract"}],
    )

    manifest = build_manifest(graph, _config()).manifest
    record = manifest.get(ManifestKey("/project/app/globals.css", ""))

    assert record is not None
    assert record.id == "9"
    assert record.name == ""
    assert record.chunks == ["static/css/a.css", "static/css/b.css", "static/css/c.css"]
    assert record.is_async is None
    assert "async" not in record.to_payload()


def test_stylesheet_chunks_skip_pages_css() -> None:
    graph = _graph(
        chunks=[{"id": 1, "files": ["static/css/pages/_app.css", "static/css/app.css"], "modules": ["style"]}],
        groups=[{"name": "app/page", "chunks": [1]}],
        modules=[{"identifier": "style", "resource": "/project/app/app.css"}],
    )

    manifest = build_manifest(graph, _config()).manifest
    record = manifest.get(ManifestKey("/project/app/app.css", ""))

    assert record.chunks == ["static/css/app.css"]
    assert record.id == ""


def test_library_modules_get_mirrored_esm_records() -> None:
    resource = "/project/node_modules/next/dist/client/link.js"
    graph = _graph(
        chunks=[{"id": 1, "name": "main", "modules": ["link"]}],
        groups=[{"name": "app/page", "chunks": [1]}],
        modules=[_client_module("link", resource, 5, provided_exports=["default"])],
    )

    manifest = build_manifest(graph, _config()).manifest
    mirror = "/project/node_modules/next/dist/esm/client/link.js"

    for export in (None, "", "default"):
        original = manifest.get(ManifestKey(resource, export))
        twin = manifest.get(ManifestKey(mirror, export))
        assert twin is original
        assert twin.id == "5"


def test_modules_outside_library_are_not_mirrored() -> None:
    manifest = build_manifest(_single_page_graph("/project/app/comp.js"), _config()).manifest

    assert all("/esm/" not in key.path for key in manifest.records)


def test_ssr_mapping_uses_server_module_ids() -> None:
    graph = _single_page_graph("/project/app/comp.js")
    builder = ManifestBuilder(
        _config(),
        server_module_ids={"./app/comp.js": 901},
        edge_server_module_ids={"./app/comp.js": "edge-17"},
    )

    manifest = builder.build(graph).manifest

    assert set(manifest.ssr_module_mapping) == {"42"}
    ssr_exports = manifest.ssr_module_mapping["42"]
    assert set(ssr_exports) == {"*", "", "Foo"}
    assert ssr_exports["Foo"].id == 901
    assert ssr_exports["Foo"].chunks == ["1:main"]
    assert manifest.edge_ssr_module_mapping["42"]["*"].id == "edge-17"
    # Client records keep their client id.
    assert manifest.get(ManifestKey("/project/app/comp.js", "Foo")).id == "42"


def test_ssr_mapping_absent_for_unknown_paths() -> None:
    builder = ManifestBuilder(_config(), server_module_ids={"./app/other.js": 3})

    manifest = builder.build(_single_page_graph("/project/app/comp.js")).manifest

    assert manifest.ssr_module_mapping == {}
    assert manifest.edge_ssr_module_mapping == {}


def test_ssr_lookup_prefers_resolved_path() -> None:
    graph = _single_page_graph("/project/app/comp.js?query", resource_resolve_path="/project/app/comp.js")
    builder = ManifestBuilder(_config(), server_module_ids={"./app/comp.js": 4})

    manifest = builder.build(graph).manifest

    assert manifest.ssr_module_mapping["42"]["*"].id == 4


def test_concatenated_inner_modules_use_parent_id() -> None:
    graph = _graph(
        chunks=[{"id": 1, "name": "main", "modules": ["concat"]}],
        groups=[{"name": "app/page", "chunks": [1]}],
        modules=[
            {"identifier": "concat", "id": 77, "layer": "app-client", "modules": ["inner-a", "inner-b"]},
            _client_module("inner-a", "/project/app/a.js", None, provided_exports=["A"]),
            _client_module("inner-b", "/project/app/b.js", None, provided_exports=["B"]),
        ],
    )

    manifest = build_manifest(graph, _config()).manifest

    assert manifest.get(ManifestKey("/project/app/a.js", "A")).id == "77"
    assert manifest.get(ManifestKey("/project/app/b.js", "B")).id == "77"
    assert all(key.path != "" for key in manifest.records)


def test_async_modules_are_flagged_and_handoff_resets() -> None:
    ledger = AsyncClientModules(["/project/app/comp.js"])

    result = build_manifest(
        _single_page_graph("/project/app/comp.js"),
        _config(),
        async_client_modules=ledger.handoff(),
    )

    assert result.manifest.get(ManifestKey("/project/app/comp.js")).is_async is True
    assert result.consumed_async_modules == frozenset({"/project/app/comp.js"})
    assert result.async_client_modules == frozenset()
    assert len(ledger) == 0


def test_commonjs_exports_are_recorded() -> None:
    graph = _single_page_graph(
        "/project/app/legacy.js",
        dependencies=[
            {"type": "cjs self exports reference", "base": "module.exports"},
            {"type": "cjs self exports reference", "base": "exports", "names": ["helper", "__esModule"]},
            {"type": "harmony import", "names": ["ignored"]},
        ],
    )

    manifest = build_manifest(graph, _config()).manifest
    names = [key.export for key in manifest.records]

    assert names == [None, "", "Foo", "default", "helper"]


def test_server_layer_and_unmarked_modules_are_skipped() -> None:
    graph = _graph(
        chunks=[{"id": 1, "name": "main", "modules": ["server", "plain", "no-path"]}],
        groups=[{"name": "app/page", "chunks": [1]}],
        modules=[
            {"identifier": "server", "id": 1, "resource": "/project/app/server.js", "layer": "rsc", "rsc": {"type": "client"}},
            {"identifier": "plain", "id": 2, "resource": "/project/app/plain.js", "layer": "app-client"},
            {"identifier": "no-path", "id": 3, "layer": "app-client", "rsc": {"type": "client"}},
        ],
    )

    manifest = build_manifest(graph, _config()).manifest

    assert len(manifest) == 0


def test_client_entry_requests_qualify_unmarked_modules() -> None:
    graph = _graph(
        chunks=[{"id": 1, "name": "main", "modules": ["plain"]}],
        groups=[{"name": "app/page", "chunks": [1]}],
        modules=[
            {"identifier": "entry", "rsc": {"requests": ["/project/app/plain.js"]}},
            {"identifier": "plain", "id": 2, "resource": "/project/app/plain.js", "layer": "app-client"},
        ],
    )

    manifest = build_manifest(graph, _config()).manifest

    assert ManifestKey("/project/app/plain.js") in manifest


def test_client_module_without_id_aborts_build() -> None:
    graph = _graph(
        chunks=[{"id": 1, "name": "main", "modules": ["comp"]}],
        groups=[{"name": "app/page", "chunks": [1]}],
        modules=[_client_module("comp", "/project/app/comp.js", None)],
    )

    with pytest.raises(ManifestInvariantError):
        build_manifest(graph, _config())


def test_unknown_chunk_reference_aborts_build() -> None:
    graph = _graph(chunks=[], groups=[{"name": "app/page", "chunks": [404]}], modules=[])

    with pytest.raises(ManifestInvariantError):
        build_manifest(graph, _config())


def test_unknown_module_reference_aborts_build() -> None:
    graph = _graph(
        chunks=[{"id": 1, "modules": ["missing"]}],
        groups=[{"name": "app/page", "chunks": [1]}],
        modules=[],
    )

    with pytest.raises(ManifestInvariantError):
        build_manifest(graph, _config())


def test_build_is_deterministic() -> None:
    graph = _graph(
        chunks=[
            {"id": 1, "name": "main", "hash": "a", "files": ["static/css/x.css"], "modules": ["comp", "style"]},
            {"id": 2, "name": "other", "hash": "b", "modules": ["comp"]},
        ],
        groups=[
            {"name": "pages/_app", "chunks": [2]},
            {"name": "app/page", "chunks": [1], "parents": ["app/layout"]},
        ],
        modules=[
            _client_module("comp", "/project/node_modules/next/dist/client/link.js", provided_exports=["Link"]),
            {"identifier": "style", "id": 2, "resource": "/project/app/x.css"},
        ],
    )
    builder = ManifestBuilder(_config(dev=False), server_module_ids={"./node_modules/next/dist/client/link.js": 8})

    first = render_manifest_json(builder.build(graph).manifest, dev=False)
    second = render_manifest_json(builder.build(graph).manifest, dev=False)

    assert first == second
