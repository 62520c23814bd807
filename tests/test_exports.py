"""Tests for exported function detection."""
import pytest

from shv.core.exports import ExportScanner


@pytest.fixture
def scanner():
    return ExportScanner()


class TestExportedNames:
    def test_function_declarations(self, scanner):
        source = """
export function handler() {}
export async function main(event: unknown) {}
export function* stream() {}
function internal() {}
"""
        assert scanner.exported_names(source) == ["handler", "main", "stream"]

    def test_function_valued_bindings(self, scanner):
        source = """
export const arrow = async (event) => ({ statusCode: 200 });
export let expression = function () {};
export const config = { memory: 128 };
export const name = "upload";
export const count = 3;
"""
        assert scanner.exported_names(source) == ["arrow", "expression"]

    def test_var_bindings(self, scanner):
        source = """
export var handler = () => {};
export var wrapped = handle(app), table = "orders";
"""
        assert scanner.exported_names(source) == ["handler", "wrapped"]

    def test_handler_factory_calls(self, scanner):
        source = """
export const handler = handle(app);
export const wrapped = await createAWSHandler({}, async () => {});
export const built = factory.create(options);
export const other = someUtility(app);
"""
        assert scanner.exported_names(source) == ["handler", "wrapped", "built"]

    def test_resource_constructions_are_not_functions(self, scanner):
        source = """
export const api = new sst.aws.ApiGatewayV1("Api");
export const table = sst.aws.Dynamo.get("Table", "id");
export const linked = sst.aws.Function.handler("x");
export const fromRegistry = registry.get("x").handle();
"""
        assert scanner.exported_names(source) == []

    def test_default_exports(self, scanner):
        assert scanner.exported_names("export default function () {}") == ["default"]
        assert scanner.exported_names("export default async function main() {}") == ["default"]
        assert scanner.exported_names("export default $config({});") == ["default"]
        assert scanner.exported_names("export default class Foo {}") == ["default"]

    def test_export_clause_uses_aliases(self, scanner):
        source = """
const a = () => {};
const b = () => {};
export { a, b as handler };
"""
        assert scanner.exported_names(source) == ["a", "handler"]

    def test_type_only_exports_are_skipped(self, scanner):
        source = """
export type Event = { id: string };
export interface Options { withDb: boolean }
export type { Context } from "aws-lambda";
export { type Options as Opts, handler };
"""
        assert scanner.exported_names(source) == ["handler"]

    def test_duplicates_keep_first_position(self, scanner):
        source = """
export const handler = () => {};
const other = () => {};
export { handler, other };
"""
        assert scanner.exported_names(source) == ["handler", "other"]

    def test_nested_exports_are_ignored(self, scanner):
        source = """
namespace Inner {
  export const hidden = () => {};
}
export const visible = () => {};
"""
        assert scanner.exported_names(source) == ["visible"]

    def test_no_exports(self, scanner):
        assert scanner.exported_names("const handler = () => {};") == []
        assert scanner.exported_names("") == []


class TestScanFile:
    def test_reads_file(self, scanner, tmp_path):
        path = tmp_path / "upload.ts"
        path.write_text("export const handler = () => {};\n", encoding="utf-8")
        assert scanner.scan_file(path) == ["handler"]

    def test_missing_file_yields_nothing(self, scanner, tmp_path):
        assert scanner.scan_file(tmp_path / "missing.ts") == []

    def test_undecodable_file_yields_nothing(self, scanner, tmp_path):
        path = tmp_path / "binary.ts"
        path.write_bytes(b"\xff\xfe\x00export const handler = () => {};")
        assert scanner.scan_file(path) == []
