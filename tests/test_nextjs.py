"""Tests for the Next.js adapter (App Router, Pages Router and hybrid)."""

import pytest

from frameworks.nextjs import NextJsAdapter
from frameworks.types import Confidence, ImpactReason

NEXT_PACKAGE = '{"dependencies": {"next": "14.2.3", "react": "18.2.0"}}'


@pytest.fixture
def app_project(project):
    return project(
        {
            "package.json": NEXT_PACKAGE,
            "next.config.js": "module.exports = {};",
            "app/layout.tsx": "export default function Root() {}",
            "app/page.tsx": "export default function Home() {}",
            "app/blog/[slug]/page.tsx": "export default function Post() {}",
            "app/(marketing)/pricing/page.tsx": "export default function Pricing() {}",
            "app/dashboard/layout.tsx": "export default function Shell() {}",
            "app/dashboard/page.tsx": "export default function Dashboard() {}",
            "app/dashboard/settings/page.tsx": "export default function Settings() {}",
            "app/dashboard/@analytics/page.tsx": "export default function Analytics() {}",
            "app/dashboard/_components/Chart.tsx": "export function Chart() {}",
            "app/photos/(.)[id]/page.tsx": "export default function Modal() {}",
            "app/docs/[[...rest]]/page.mdx": "# Docs",
            "app/feed/route.ts": (
                "export async function GET() {}\n"
                "export async function POST() {}\n"
                "export function OPTIONS() {}\n"
            ),
            "app/api/users/route.ts": "export async function GET() {}",
            "app/api/users/page.tsx": "export default function Ignored() {}",
            "src/components/Button.tsx": "export function Button() {}",
        }
    )


@pytest.fixture
def pages_project(project):
    return project(
        {
            "package.json": NEXT_PACKAGE,
            "pages/_app.tsx": "export default function App() {}",
            "pages/_document.tsx": "export default function Doc() {}",
            "pages/index.tsx": "export default function Home() {}",
            "pages/about.tsx": "export default function About() {}",
            "pages/blog/index.tsx": "export default function Blog() {}",
            "pages/blog/[slug].tsx": "export default function Post() {}",
            "pages/api/hello.ts": "export default function handler() {}",
            "pages/types.d.ts": "declare const x: number;",
        }
    )


class TestNextJsAdapter:
    """Tests for adapter construction."""

    def test_router_types(self):
        assert NextJsAdapter("app").name == "nextjs-app"
        assert NextJsAdapter("pages").name == "nextjs-pages"
        assert NextJsAdapter().name == "nextjs"

    def test_unknown_router_type(self):
        with pytest.raises(ValueError):
            NextJsAdapter("edge")


class TestNextJsDetection:
    """Tests for NextJsAdapter.detect()."""

    @pytest.mark.asyncio
    async def test_app_router(self, app_project, make_ctx):
        result = await NextJsAdapter().detect(make_ctx(app_project))

        assert result.framework == "nextjs-app"
        assert result.router_type == "app"
        assert result.confidence == Confidence.HIGH
        assert result.version == "14.2.3"

    @pytest.mark.asyncio
    async def test_pages_router_without_config(self, pages_project, make_ctx):
        result = await NextJsAdapter().detect(make_ctx(pages_project))

        assert result.framework == "nextjs-pages"
        assert result.router_type == "pages"
        assert result.confidence == Confidence.MEDIUM

    @pytest.mark.asyncio
    async def test_hybrid(self, project, make_ctx):
        root = project(
            {
                "package.json": NEXT_PACKAGE,
                "next.config.mjs": "",
                "app/page.tsx": "",
                "pages/about.tsx": "",
            }
        )

        result = await NextJsAdapter().detect(make_ctx(root))

        assert result.framework == "nextjs"
        assert result.router_type == "hybrid"

    @pytest.mark.asyncio
    async def test_dependency_only_is_low(self, project, make_ctx):
        root = project({"package.json": NEXT_PACKAGE})

        result = await NextJsAdapter("app").detect(make_ctx(root))

        assert result.framework == "nextjs-app"
        assert result.confidence == Confidence.LOW
        assert result.router_type is None


class TestAppRouterDiscovery:
    """Tests for App Router route discovery."""

    @pytest.mark.asyncio
    async def test_route_paths(self, app_project, make_ctx):
        routes = await NextJsAdapter("app").discover_routes(make_ctx(app_project))

        assert [r.path for r in routes] == [
            "/",
            "/blog/[slug]",
            "/dashboard",
            "/dashboard/settings",
            "/docs/[[...rest]]",
            "/feed",
            "/pricing",
        ]

    @pytest.mark.asyncio
    async def test_route_properties(self, app_project, make_ctx):
        routes = {
            r.path: r
            for r in await NextJsAdapter("app").discover_routes(make_ctx(app_project))
        }

        assert routes["/"].has_layout
        assert routes["/dashboard"].has_layout
        assert routes["/dashboard"].is_auth_protected
        assert routes["/dashboard"].page_files == ["page.tsx"]
        assert routes["/pricing"].group == "marketing"
        assert routes["/blog/[slug]"].is_dynamic
        assert routes["/docs/[[...rest]]"].page_files == ["page.mdx"]

    @pytest.mark.asyncio
    async def test_route_handler(self, app_project, make_ctx):
        routes = {
            r.path: r
            for r in await NextJsAdapter("app").discover_routes(make_ctx(app_project))
        }

        feed = routes["/feed"]
        assert feed.has_api_endpoint
        assert feed.page_files == ["route.ts"]
        assert feed.server_files == ["route.ts"]
        assert feed.api_methods == ["GET", "POST", "OPTIONS"]

    @pytest.mark.asyncio
    async def test_api_directories_are_skipped(self, app_project, make_ctx):
        routes = await NextJsAdapter("app").discover_routes(make_ctx(app_project))

        assert not [r for r in routes if r.path.startswith("/api")]
        assert not [r for r in routes if r.directory.startswith("app/api")]

    @pytest.mark.asyncio
    async def test_slot_merges_into_parent_path(self, app_project, make_ctx):
        """A parallel slot page shares its parent URL; one route survives."""
        routes = await NextJsAdapter("app").discover_routes(make_ctx(app_project))

        dashboards = [r for r in routes if r.path == "/dashboard"]
        assert len(dashboards) == 1
        assert dashboards[0].directory == "app/dashboard"


class TestPagesRouterDiscovery:
    """Tests for Pages Router route discovery."""

    @pytest.mark.asyncio
    async def test_route_paths(self, pages_project, make_ctx):
        routes = await NextJsAdapter("pages").discover_routes(make_ctx(pages_project))

        assert [r.path for r in routes] == ["/", "/about", "/blog", "/blog/[slug]"]

    @pytest.mark.asyncio
    async def test_app_file_gives_layout(self, pages_project, make_ctx):
        routes = await NextJsAdapter("pages").discover_routes(make_ctx(pages_project))

        assert all(r.has_layout for r in routes)
        post = next(r for r in routes if r.path == "/blog/[slug]")
        assert post.page_files == ["[slug].tsx"]
        assert post.directory == "pages/blog"


class TestHybridDiscovery:
    """Tests for projects using both routers."""

    @pytest.mark.asyncio
    async def test_app_router_wins(self, project, make_ctx):
        root = project(
            {
                "app/about/page.tsx": "",
                "pages/about.tsx": "",
                "pages/contact.tsx": "",
            }
        )

        routes = await NextJsAdapter().discover_routes(make_ctx(root))

        assert [(r.path, r.directory) for r in routes] == [
            ("/about", "app/about"),
            ("/contact", "pages"),
        ]


class TestNextJsImpact:
    """Tests for Next.js change impact."""

    @pytest.mark.asyncio
    async def test_layout_propagation(self, app_project, make_ctx, make_graph):
        adapter = NextJsAdapter("app")
        routes = await adapter.discover_routes(make_ctx(app_project))

        impact = adapter.explain_file_impact(
            "app/dashboard/layout.tsx", routes, make_graph([])
        )

        assert [(r.path, reason) for r, reason in impact] == [
            ("/dashboard", ImpactReason.DIRECT),
            ("/dashboard/settings", ImpactReason.LAYOUT),
        ]

    @pytest.mark.asyncio
    async def test_private_component_owned_by_enclosing_folder_routes(
        self, app_project, make_ctx, make_graph
    ):
        """A file under a route folder is owned by every folder route above it."""
        adapter = NextJsAdapter("app")
        routes = await adapter.discover_routes(make_ctx(app_project))
        graph = make_graph(
            [("app/dashboard/_components/Chart.tsx", "src/components/Button.tsx")]
        )

        affected = adapter.map_file_to_routes("src/components/Button.tsx", routes, graph)

        assert [r.path for r in affected] == ["/", "/dashboard"]

    @pytest.mark.asyncio
    async def test_pages_file_routes_are_not_folders(self, pages_project, make_ctx, make_graph):
        adapter = NextJsAdapter("pages")
        routes = await adapter.discover_routes(make_ctx(pages_project))

        affected = adapter.map_file_to_routes("pages/about.tsx", routes, make_graph([]))

        assert [r.path for r in affected] == ["/about"]

    @pytest.mark.asyncio
    async def test_app_file_affects_every_page(self, pages_project, make_ctx, make_graph):
        adapter = NextJsAdapter("pages")
        routes = await adapter.discover_routes(make_ctx(pages_project))

        affected = adapter.map_file_to_routes("pages/_app.tsx", routes, make_graph([]))

        assert {r.path for r in affected} == {"/", "/about", "/blog", "/blog/[slug]"}

    def test_file_classification(self):
        adapter = NextJsAdapter()

        assert adapter.is_route_file("app/blog/page.tsx")
        assert adapter.is_route_file("app/api/users/route.ts")
        assert adapter.is_route_file("pages/about.tsx")
        assert not adapter.is_route_file("pages/api/hello.ts")
        assert not adapter.is_route_file("pages/_app.tsx")
        assert adapter.is_layout_file("app/layout.tsx")
        assert adapter.is_layout_file("app/dashboard/template.tsx")
        assert adapter.is_layout_file("pages/_app.tsx")
        assert not adapter.is_layout_file("pages/blog/_app.tsx")


class TestNextJsImports:
    """Tests for Next.js import resolution."""

    @pytest.mark.asyncio
    async def test_at_alias(self, app_project, make_ctx):
        resolved = await NextJsAdapter().resolve_import(
            "@/components/Button", "app/page.tsx", make_ctx(app_project)
        )
        assert resolved == "src/components/Button.tsx"

    @pytest.mark.asyncio
    async def test_next_internal(self, app_project, make_ctx):
        resolved = await NextJsAdapter().resolve_import(
            "next/link", "app/page.tsx", make_ctx(app_project)
        )
        assert resolved is None


class TestNextJsLoginPages:
    """Tests for NextJsAdapter.find_login_pages()."""

    @pytest.mark.asyncio
    async def test_pages_and_app_candidates(self, project, make_ctx):
        root = project(
            {
                "pages/signin.tsx": "export default function SignIn() {}",
                "app/(auth)/login/page.tsx": "export default function Login() {}",
            }
        )

        pages = await NextJsAdapter().find_login_pages(make_ctx(root))

        assert [(p.file_path, p.route) for p in pages] == [
            ("app/(auth)/login/page.tsx", "/login"),
            ("pages/signin.tsx", "/signin"),
        ]
