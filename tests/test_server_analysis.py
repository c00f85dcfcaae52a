"""Tests for frameworks.server_analysis - lexical scanning of route modules."""

from frameworks.server_analysis import (
    extract_api_methods,
    extract_form_actions,
    scan_route_module,
)
from frameworks.types import NEXTJS_HTTP_METHODS


class TestExtractApiMethods:
    """Tests for extract_api_methods()."""

    def test_function_and_const_exports(self):
        content = """
export async function GET({ url }) {
  return json([]);
}
export const POST = async ({ request }) => new Response();
export function DELETE() {}
"""
        assert extract_api_methods(content) == ["GET", "POST", "DELETE"]

    def test_export_list(self):
        content = """
const handler = () => new Response();
export { handler as GET, handler as PATCH };
"""
        assert extract_api_methods(content) == ["GET", "PATCH"]

    def test_ignores_non_methods_and_duplicates(self):
        content = """
export function GETTER() {}
export const load = () => {};
export function GET() {}
export { GET as default };
"""
        assert extract_api_methods(content) == ["GET"]

    def test_head_options_only_when_allowed(self):
        content = "export function HEAD() {}\nexport function OPTIONS() {}\n"

        assert extract_api_methods(content) == []
        assert extract_api_methods(content, NEXTJS_HTTP_METHODS) == ["HEAD", "OPTIONS"]


class TestExtractFormActions:
    """Tests for extract_form_actions()."""

    def test_named_and_default_actions(self):
        content = """
import { fail } from '@sveltejs/kit';

export const actions = {
  default: async ({ request }) => {
    const data = await request.formData();
    return { success: true };
  },
  login: async (event) => {
    if (!event) return fail(400, { missing: true });
  },
  'sign-up': async () => {}
};
"""
        assert extract_form_actions(content) == ["default", "login", "sign-up"]

    def test_typed_actions_with_method_shorthand(self):
        content = """
import type { Actions } from './$types';

export const actions: Actions = {
  async create({ request }) {
    return { ok: true };
  },
  remove: async () => {}
};
"""
        assert extract_form_actions(content) == ["create", "remove"]

    def test_nested_objects_are_ignored(self):
        content = """
export const actions = {
  save: async () => {
    const options = { retry: 3, nested: { deep: true } };
    return options;
  }
};
"""
        assert extract_form_actions(content) == ["save"]

    def test_no_actions(self):
        assert extract_form_actions("export const load = () => ({});") == []


class TestScanRouteModule:
    """Tests for scan_route_module()."""

    def test_page_module(self):
        content = """
export async function loader({ params }) { return json({}); }
export async function action({ request }) { return redirect('/'); }
export default function Post() { return null; }
"""
        exports = scan_route_module(content)

        assert exports.has_loader
        assert exports.has_action
        assert exports.has_default_export
        assert not exports.is_resource_route

    def test_resource_route(self):
        content = "export const loader = async () => new Response('ok');\n"

        exports = scan_route_module(content)

        assert exports.has_loader
        assert not exports.has_action
        assert exports.is_resource_route

    def test_export_list_default(self):
        content = "function Page() {}\nconst loader = () => null;\nexport { Page as default, loader };\n"

        exports = scan_route_module(content)

        assert exports.has_default_export
        assert exports.has_loader

    def test_loader_prefix_is_not_loader(self):
        assert not scan_route_module("export function loaderHelper() {}").has_loader
