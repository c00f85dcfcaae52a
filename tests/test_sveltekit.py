"""Tests for the SvelteKit adapter."""

import pytest

from frameworks.sveltekit import SvelteKitAdapter
from frameworks.types import AdapterContext, Confidence, ImpactReason


SVELTEKIT_PACKAGE = '{"devDependencies": {"@sveltejs/kit": "^2.0.0", "svelte": "^4.0.0"}}'


@pytest.fixture
def adapter():
    return SvelteKitAdapter()


@pytest.fixture
def shop(project):
    """A small SvelteKit app with groups, dynamic routes and server files."""
    return project(
        {
            "package.json": SVELTEKIT_PACKAGE,
            "svelte.config.js": "export default {};",
            "src/routes/+layout.svelte": "<slot />",
            "src/routes/+page.svelte": "<h1>Home</h1>",
            "src/routes/about/+page.svelte": "<h1>About</h1>",
            "src/routes/blog/[slug]/+page.svelte": "<article />",
            "src/routes/blog/[slug]/+page.ts": "export const load = () => ({});",
            "src/routes/(auth)/login/+page.svelte": "<form />",
            "src/routes/(auth)/login/+page.server.ts": (
                "export const actions = {\n"
                "  default: async ({ request }) => {},\n"
                "  reset: async () => {}\n"
                "};\n"
            ),
            "src/routes/dashboard/+layout.svelte": "<slot />",
            "src/routes/dashboard/settings/+page.svelte": "<h1>Settings</h1>",
            "src/routes/api/items/+server.ts": (
                "export async function GET() {}\nexport const POST = async () => {};\n"
            ),
            "src/routes/empty/": "",
            "src/lib/Button.svelte": "<button />",
        }
    )


class TestSvelteKitDetection:
    """Tests for SvelteKitAdapter.detect()."""

    @pytest.mark.asyncio
    async def test_all_indicators_high(self, adapter, shop, make_ctx):
        result = await adapter.detect(make_ctx(shop))

        assert result.framework == "sveltekit"
        assert result.confidence == Confidence.HIGH
        assert result.version == "^2.0.0"

    @pytest.mark.asyncio
    async def test_two_indicators_medium(self, adapter, project, make_ctx):
        """Config file and routes directory without the dependency."""
        root = project(
            {
                "package.json": "{}",
                "svelte.config.js": "",
                "src/routes/+page.svelte": "",
            }
        )

        result = await adapter.detect(make_ctx(root))

        assert result.framework == "sveltekit"
        assert result.confidence == Confidence.MEDIUM
        assert "2 of 3" in result.reason

    @pytest.mark.asyncio
    async def test_nothing_found(self, adapter, project, make_ctx):
        root = project({"package.json": '{"dependencies": {"react": "18"}}'})

        result = await adapter.detect(make_ctx(root))

        assert result.framework is None
        assert result.confidence == Confidence.NONE


class TestSvelteKitDiscovery:
    """Tests for SvelteKitAdapter.discover_routes()."""

    @pytest.mark.asyncio
    async def test_route_paths(self, adapter, shop, make_ctx):
        routes = await adapter.discover_routes(make_ctx(shop))

        assert [r.path for r in routes] == [
            "/",
            "/about",
            "/api/items",
            "/blog/[slug]",
            "/dashboard/settings",
            "/login",
        ]

    @pytest.mark.asyncio
    async def test_route_properties(self, adapter, shop, make_ctx):
        routes = {r.path: r for r in await adapter.discover_routes(make_ctx(shop))}

        home = routes["/"]
        assert home.has_layout
        assert home.directory == "src/routes"
        assert home.page_files == ["+page.svelte"]

        post = routes["/blog/[slug]"]
        assert post.is_dynamic
        assert post.page_files == ["+page.svelte", "+page.ts"]

        login = routes["/login"]
        assert login.group == "auth"
        assert login.is_auth_protected
        assert login.actions == ["default", "reset"]
        assert login.has_form_handler
        assert login.server_files == ["+page.server.ts"]

        assert routes["/dashboard/settings"].is_auth_protected
        assert not routes["/about"].is_auth_protected

    @pytest.mark.asyncio
    async def test_server_endpoint(self, adapter, shop, make_ctx):
        routes = {r.path: r for r in await adapter.discover_routes(make_ctx(shop))}

        api = routes["/api/items"]
        assert api.has_api_endpoint
        assert api.api_methods == ["GET", "POST"]
        assert api.page_files == []

    @pytest.mark.asyncio
    async def test_paths_are_canonical(self, adapter, shop, make_ctx):
        """Every path starts with "/", has no group parens and no trailing slash."""
        routes = await adapter.discover_routes(make_ctx(shop))

        for route in routes:
            assert route.path.startswith("/")
            assert "(" not in route.path
            assert route.path == "/" or not route.path.endswith("/")

    @pytest.mark.asyncio
    async def test_discovery_is_deterministic(self, adapter, shop, make_ctx):
        ctx = make_ctx(shop)

        first = await adapter.discover_routes(ctx)
        second = await adapter.discover_routes(ctx)

        assert [r.to_dict() for r in first] == [r.to_dict() for r in second]
        assert [r.path for r in first] == sorted(r.path for r in first)

    @pytest.mark.asyncio
    async def test_no_routes_directory(self, adapter, project, make_ctx):
        root = project({"package.json": SVELTEKIT_PACKAGE})
        assert await adapter.discover_routes(make_ctx(root)) == []

    @pytest.mark.asyncio
    async def test_nested_project_root(self, adapter, project, make_ctx):
        """Routes stay project-relative when the app lives in a subdirectory."""
        root = project({"apps/web/src/routes/about/+page.svelte": ""})

        routes = await adapter.discover_routes(make_ctx(root, "apps/web"))

        assert [(r.path, r.directory) for r in routes] == [
            ("/about", "src/routes/about")
        ]

    @pytest.mark.asyncio
    async def test_remote_source_matches_local(self, adapter, github_source):
        source = github_source(
            {
                "src/routes/+page.svelte": "",
                "src/routes/blog/[slug]/+page.svelte": "",
            }
        )

        routes = await adapter.discover_routes(AdapterContext(file_source=source))

        assert [r.path for r in routes] == ["/", "/blog/[slug]"]


class TestSvelteKitImpact:
    """Tests for SvelteKit change impact."""

    @pytest.mark.asyncio
    async def test_page_file_is_direct(self, adapter, shop, make_ctx, make_graph):
        routes = await adapter.discover_routes(make_ctx(shop))

        impact = adapter.explain_file_impact(
            "src/routes/about/+page.svelte", routes, make_graph([])
        )

        assert [(r.path, reason) for r, reason in impact] == [
            ("/about", ImpactReason.DIRECT)
        ]

    @pytest.mark.asyncio
    async def test_layout_cascades(self, adapter, shop, make_ctx, make_graph):
        routes = await adapter.discover_routes(make_ctx(shop))

        affected = adapter.map_file_to_routes(
            "src/routes/dashboard/+layout.svelte", routes, make_graph([])
        )

        assert [r.path for r in affected] == ["/dashboard/settings"]

    @pytest.mark.asyncio
    async def test_component_through_import_graph(self, adapter, shop, make_ctx, make_graph):
        routes = await adapter.discover_routes(make_ctx(shop))
        graph = make_graph(
            [("src/routes/dashboard/settings/+page.svelte", "src/lib/Button.svelte")]
        )

        impact = adapter.explain_file_impact("src/lib/Button.svelte", routes, graph)

        # The page itself first, then the enclosing root route
        assert [(r.path, reason) for r, reason in impact] == [
            ("/dashboard/settings", ImpactReason.IMPORT_GRAPH),
            ("/", ImpactReason.IMPORT_GRAPH),
        ]

    def test_file_classification(self, adapter):
        assert adapter.is_route_file("src/routes/+page.svelte")
        assert adapter.is_route_file("src/routes/api/+server.ts")
        assert adapter.is_layout_file("src/routes/+layout.server.ts")
        assert not adapter.is_route_file("src/lib/Button.svelte")


class TestSvelteKitImports:
    """Tests for SvelteKit import resolution."""

    @pytest.mark.asyncio
    async def test_lib_alias(self, adapter, shop, make_ctx):
        resolved = await adapter.resolve_import(
            "$lib/Button.svelte", "src/routes/+page.svelte", make_ctx(shop)
        )
        assert resolved == "src/lib/Button.svelte"

    @pytest.mark.asyncio
    async def test_extensionless_and_internal(self, adapter, shop, make_ctx):
        ctx = make_ctx(shop)

        assert (
            await adapter.resolve_import("$lib/Button", "src/routes/+page.svelte", ctx)
            == "src/lib/Button.svelte"
        )
        assert await adapter.resolve_import("$app/stores", "src/routes/+page.svelte", ctx) is None
        assert await adapter.resolve_import("svelte", "src/routes/+page.svelte", ctx) is None

    @pytest.mark.asyncio
    async def test_relative(self, adapter, shop, make_ctx):
        resolved = await adapter.resolve_import(
            "../../lib/Button.svelte", "src/routes/about/+page.svelte", make_ctx(shop)
        )
        assert resolved == "src/lib/Button.svelte"


class TestSvelteKitLoginPages:
    """Tests for SvelteKitAdapter.find_login_pages()."""

    @pytest.mark.asyncio
    async def test_finds_grouped_login(self, adapter, shop, make_ctx):
        pages = await adapter.find_login_pages(make_ctx(shop))

        assert [(p.file_path, p.route) for p in pages] == [
            ("src/routes/(auth)/login/+page.svelte", "/login")
        ]
        assert pages[0].content == "<form />"
