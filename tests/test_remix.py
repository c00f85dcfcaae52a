"""Tests for the Remix adapter and the shared flat-route naming rules."""

import pytest

from frameworks.flat_routes import (
    flat_name_to_url,
    folder_to_url,
    is_pathless_layout_name,
    split_flat_name,
)
from frameworks.remix import RemixAdapter
from frameworks.types import Confidence, ImpactReason

REMIX_PACKAGE = '{"dependencies": {"@remix-run/react": "^2.8.0", "@remix-run/node": "^2.8.0"}}'

PAGE = "export default function Page() { return null; }\n"


@pytest.fixture
def adapter():
    return RemixAdapter()


@pytest.fixture
def remix_app(project):
    return project(
        {
            "package.json": REMIX_PACKAGE,
            "remix.config.js": "module.exports = {};",
            "app/root.tsx": PAGE,
            "app/components/Header.tsx": "export function Header() {}",
            "app/routes/_index.tsx": PAGE,
            "app/routes/about.tsx": PAGE,
            "app/routes/blog._index.tsx": PAGE,
            "app/routes/blog.$slug.tsx": (
                "export async function loader({ params }) { return json({}); }\n"
                "export async function action({ request }) { return null; }\n"
                + PAGE
            ),
            "app/routes/robots_.txt.ts": (
                "export const loader = () => new Response('User-agent: *');\n"
            ),
            "app/routes/_auth.tsx": PAGE,
            "app/routes/_auth.login.tsx": PAGE,
            "app/routes/files.$.tsx": PAGE,
            "app/routes/dashboard/route.tsx": PAGE,
            "app/routes/dashboard/layout.tsx": PAGE,
            "app/routes/dashboard/Chart.tsx": "export function Chart() {}",
            "app/routes/settings.profile/route.tsx": PAGE,
        }
    )


class TestFlatRouteNames:
    """Tests for flat route name translation."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("_index", "/"),
            ("about", "/about"),
            ("blog.posts", "/blog/posts"),
            ("blog._index", "/blog"),
            ("blog.$slug", "/blog/:slug"),
            ("$", "/*"),
            ("files.$", "/files/*"),
            ("sitemap_.xml", "/sitemap.xml"),
            ("_auth.login", "/login"),
        ],
    )
    def test_flat_name_to_url(self, name, expected):
        assert flat_name_to_url(name) == expected

    def test_split_honours_escaped_dot(self):
        assert split_flat_name("robots_.txt") == ["robots.txt"]
        assert split_flat_name("a.b_.c.d") == ["a", "b.c", "d"]

    def test_folder_to_url(self):
        assert folder_to_url("settings.profile") == "/settings/profile"
        assert folder_to_url("users.$id") == "/users/:id"

    def test_pathless_layout_names(self):
        assert is_pathless_layout_name("_auth.tsx")
        assert not is_pathless_layout_name("_index.tsx")
        assert not is_pathless_layout_name("_auth.login.tsx")


class TestRemixDetection:
    """Tests for RemixAdapter.detect()."""

    @pytest.mark.asyncio
    async def test_classic_config(self, adapter, remix_app, make_ctx):
        result = await adapter.detect(make_ctx(remix_app))

        assert result.framework == "remix"
        assert result.confidence == Confidence.HIGH
        assert result.version == "^2.8.0"

    @pytest.mark.asyncio
    async def test_vite_plugin_counts_as_config(self, adapter, project, make_ctx):
        root = project(
            {
                "package.json": REMIX_PACKAGE,
                "vite.config.ts": (
                    'import { vitePlugin as remix } from "@remix-run/dev";\n'
                    "export default { plugins: [remix()] };\n"
                ),
                "app/routes/_index.tsx": PAGE,
            }
        )

        result = await adapter.detect(make_ctx(root))

        assert result.confidence == Confidence.HIGH

    @pytest.mark.asyncio
    async def test_plain_vite_config_does_not_count(self, adapter, project, make_ctx):
        root = project(
            {
                "package.json": REMIX_PACKAGE,
                "vite.config.ts": "export default {};",
                "app/routes/_index.tsx": PAGE,
            }
        )

        result = await adapter.detect(make_ctx(root))

        assert result.confidence == Confidence.MEDIUM

    @pytest.mark.asyncio
    async def test_not_remix(self, adapter, project, make_ctx):
        root = project({"package.json": '{"dependencies": {"vue": "3"}}'})

        result = await adapter.detect(make_ctx(root))

        assert result.framework is None
        assert result.confidence == Confidence.NONE


class TestRemixDiscovery:
    """Tests for RemixAdapter.discover_routes()."""

    @pytest.mark.asyncio
    async def test_route_paths(self, adapter, remix_app, make_ctx):
        routes = await adapter.discover_routes(make_ctx(remix_app))

        assert [r.path for r in routes] == [
            "/",
            "/about",
            "/blog",
            "/blog/:slug",
            "/dashboard",
            "/files/*",
            "/login",
            "/robots.txt",
            "/settings/profile",
        ]

    @pytest.mark.asyncio
    async def test_loader_and_action(self, adapter, remix_app, make_ctx):
        routes = {r.path: r for r in await adapter.discover_routes(make_ctx(remix_app))}

        post = routes["/blog/:slug"]
        assert post.is_dynamic
        assert post.api_methods == ["GET"]
        assert post.actions == ["default"]
        assert post.has_form_handler
        assert post.server_files == ["blog.$slug.tsx"]
        assert not post.has_api_endpoint

    @pytest.mark.asyncio
    async def test_resource_route(self, adapter, remix_app, make_ctx):
        routes = {r.path: r for r in await adapter.discover_routes(make_ctx(remix_app))}

        robots = routes["/robots.txt"]
        assert robots.has_api_endpoint
        assert robots.api_methods == ["GET"]
        assert not robots.has_form_handler

    @pytest.mark.asyncio
    async def test_folder_routes(self, adapter, remix_app, make_ctx):
        routes = {r.path: r for r in await adapter.discover_routes(make_ctx(remix_app))}

        dashboard = routes["/dashboard"]
        assert dashboard.directory == "app/routes/dashboard"
        assert dashboard.page_files == ["route.tsx"]
        assert dashboard.has_layout
        assert routes["/settings/profile"].is_auth_protected

    @pytest.mark.asyncio
    async def test_no_routes_directory(self, adapter, project, make_ctx):
        root = project({"package.json": REMIX_PACKAGE})
        assert await adapter.discover_routes(make_ctx(root)) == []


class TestRemixImpact:
    """Tests for Remix change impact."""

    @pytest.mark.asyncio
    async def test_flat_route_is_direct_only(self, adapter, remix_app, make_ctx, make_graph):
        """Flat routes share a folder but are not folder routes."""
        routes = await adapter.discover_routes(make_ctx(remix_app))

        impact = adapter.explain_file_impact("app/routes/about.tsx", routes, make_graph([]))

        assert [(r.path, reason) for r, reason in impact] == [
            ("/about", ImpactReason.DIRECT)
        ]

    @pytest.mark.asyncio
    async def test_folder_layout(self, adapter, remix_app, make_ctx, make_graph):
        routes = await adapter.discover_routes(make_ctx(remix_app))

        impact = adapter.explain_file_impact(
            "app/routes/dashboard/layout.tsx", routes, make_graph([])
        )

        assert [(r.path, reason) for r, reason in impact] == [
            ("/dashboard", ImpactReason.DIRECT)
        ]

    @pytest.mark.asyncio
    async def test_root_module_affects_everything(self, adapter, remix_app, make_ctx, make_graph):
        routes = await adapter.discover_routes(make_ctx(remix_app))

        affected = adapter.map_file_to_routes("app/root.tsx", routes, make_graph([]))

        assert len(affected) == len(routes)

    @pytest.mark.asyncio
    async def test_component_inside_folder_route(self, adapter, remix_app, make_ctx, make_graph):
        routes = await adapter.discover_routes(make_ctx(remix_app))
        graph = make_graph(
            [
                ("app/routes/dashboard/route.tsx", "app/routes/dashboard/Chart.tsx"),
                ("app/routes/dashboard/Chart.tsx", "app/components/Header.tsx"),
            ]
        )

        impact = adapter.explain_file_impact("app/components/Header.tsx", routes, graph)

        assert [(r.path, reason) for r, reason in impact] == [
            ("/dashboard", ImpactReason.IMPORT_GRAPH)
        ]

    def test_file_classification(self, adapter):
        assert adapter.is_route_file("app/routes/about.tsx")
        assert adapter.is_route_file("app/routes/dashboard/route.tsx")
        assert not adapter.is_route_file("app/routes/_auth.tsx")
        assert not adapter.is_route_file("app/routes/dashboard/Chart.tsx")
        assert adapter.is_layout_file("app/routes/_auth.tsx")
        assert adapter.is_layout_file("app/routes/dashboard/layout.tsx")
        assert adapter.is_layout_file("app/root.tsx")
        assert not adapter.is_layout_file("app/routes/_index.tsx")


class TestRemixImportsAndLogin:
    """Tests for Remix import resolution and login lookup."""

    @pytest.mark.asyncio
    async def test_tilde_alias(self, adapter, remix_app, make_ctx):
        resolved = await adapter.resolve_import(
            "~/components/Header", "app/routes/about.tsx", make_ctx(remix_app)
        )
        assert resolved == "app/components/Header.tsx"

    @pytest.mark.asyncio
    async def test_remix_packages_are_internal(self, adapter, remix_app, make_ctx):
        resolved = await adapter.resolve_import(
            "@remix-run/react", "app/routes/about.tsx", make_ctx(remix_app)
        )
        assert resolved is None

    @pytest.mark.asyncio
    async def test_pathless_login(self, adapter, remix_app, make_ctx):
        pages = await adapter.find_login_pages(make_ctx(remix_app))

        assert [(p.file_path, p.route) for p in pages] == [
            ("app/routes/_auth.login.tsx", "/login")
        ]
