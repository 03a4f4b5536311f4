"""Main CLI application class for the Body Tracker sign-in flow"""

import asyncio
import webbrowser
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from settings import API_BASE_URL, CALLBACK_PORT, CALLBACK_TIMEOUT, GOOGLE_CLIENT_ID
from oauth import AuthorizationURLBuilder, PKCEStash
from client import (
    AuthApiClient,
    AuthState,
    CallbackCoordinator,
    CallbackListener,
    SessionReconciler,
    SessionStore,
    get_auth_error_message,
)
from api import ApiServer


class BodyTrackerCLI:
    """Command line front end over the client session components"""

    def __init__(
        self,
        debug: bool = False,
        api_url: Optional[str] = None,
        store: Optional[SessionStore] = None,
        stash: Optional[PKCEStash] = None,
        console: Optional[Console] = None,
    ):
        self.debug = debug
        self.console = console or Console()
        self.store = store or SessionStore()
        self.stash = stash or PKCEStash()
        self.api = AuthApiClient(base_url=api_url or API_BASE_URL)
        self.coordinator = CallbackCoordinator(self.api, self.store, stash=self.stash)
        self.reconciler = SessionReconciler(self.store, self.api, coordinator=self.coordinator)

        if debug:
            self.console.print("[yellow]Debug mode enabled - verbose logging will be written to api_debug.log[/yellow]")

        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

    def display_header(self):
        self.console.print(Panel.fit(
            "[bold cyan]Body Tracker[/bold cyan]\n"
            "[dim]Sign in with Google[/dim]",
            border_style="cyan"
        ))

    def display_state(self, state: AuthState):
        """Render an AuthState as a two-column table"""
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="cyan", width=20)
        table.add_column()

        if state.is_authenticated and state.user:
            table.add_row("Auth Status:", "[green]✓ Authenticated[/green]")
            table.add_row("Email:", state.user.email)
            table.add_row("Name:", state.user.name or "[dim]-[/dim]")
            table.add_row("User ID:", f"[dim]{state.user.id}[/dim]")
        else:
            table.add_row("Auth Status:", "[red]✗ Not authenticated[/red]")

        self.console.print(table)

    async def authenticate(self) -> bool:
        """Run the browser login against the local callback listener"""
        if not GOOGLE_CLIENT_ID:
            self.console.print("[red]✗ GOOGLE_CLIENT_ID is not configured[/red]")
            return False

        listener = CallbackListener(port=CALLBACK_PORT)
        builder = AuthorizationURLBuilder(GOOGLE_CLIENT_ID, listener.redirect_uri, stash=self.stash)

        self.console.print("Starting callback listener...")
        await listener.start()
        try:
            flow = builder.start()

            self.console.print("\n[bold]Opening browser to:[/bold]")
            self.console.print(f"[dim]{flow.url}[/dim]\n")
            if webbrowser.open(flow.url):
                self.console.print("[green]✓ Browser opened[/green]")
            else:
                self.console.print("[yellow]⚠ Could not open browser automatically[/yellow]")
                self.console.print("\nPlease open this URL in your browser:")
                self.console.print(f"[cyan]{flow.url}[/cyan]\n")

            self.console.print("Waiting for authentication...")
            callback_url = await listener.wait_for_callback(timeout=CALLBACK_TIMEOUT)
        finally:
            await listener.stop()

        if not callback_url:
            self.console.print("[red]✗ Authentication timed out[/red]")
            return False

        self.console.print("Exchanging authorization code...")
        result = await self.reconciler.login(callback_url)
        if not result.ok:
            self.console.print(f"[red]✗ {get_auth_error_message(result.error)}[/red]")
            if self.debug:
                self.console.print(f"[dim]{result.error.code.value}: {result.error.message}[/dim]")
            return False

        self.console.print("\n[bold green]✓ Authentication successful![/bold green]")
        self.display_state(self.reconciler.optimistic)
        return True

    def login(self) -> bool:
        self.display_header()
        return self.loop.run_until_complete(self.authenticate())

    def status(self):
        """Local storage details plus server reachability"""
        info = self.store.get_storage_info()

        table = Table(title="Session Storage")
        table.add_column("Property", style="cyan")
        table.add_column("Value")
        table.add_row("Has Token", "Yes" if info["has_token"] else "No")
        table.add_row("Has User", "Yes" if info["has_user"] else "No")
        table.add_row("User", info["user_email"] or "-")

        session = self.store.load()
        if session and session.expires_at:
            expires = datetime.fromtimestamp(session.expires_at)
            table.add_row("Expires At", expires.isoformat(timespec="seconds"))
        table.add_row("Valid", "Yes" if self.store.has_valid() else "No")

        health = self.loop.run_until_complete(self.api.health_check())
        if health.ok:
            table.add_row("Server", f"[green]✓ {health.value.get('status')} (v{health.value.get('version')})[/green]")
        else:
            table.add_row("Server", f"[red]✗ {get_auth_error_message(health.error)}[/red]")

        self.console.print(table)

    async def _resolve(self) -> AuthState:
        await self.reconciler.initialize()
        return await self.reconciler.wait_revalidated()

    def whoami(self) -> AuthState:
        """Restore the stored session and confirm it with the server"""
        state = self.loop.run_until_complete(self._resolve())
        self.display_state(state)
        return state

    def logout(self):
        self.loop.run_until_complete(self.reconciler.logout())
        self.console.print("[green]✓ Logged out[/green]")

    async def _update_profile(self, display_name: str) -> bool:
        session = self.store.load()
        if session is None:
            self.console.print("[red]✗ Not logged in[/red]")
            return False

        result = await self.api.update_profile(session.token, display_name)
        if not result.ok:
            self.console.print(f"[red]✗ {result.error.message}[/red]")
            return False

        user = session.user.model_copy(update={"name": result.value.name})
        self.reconciler.update_user(user)
        self.console.print(f"[green]✓ Display name set to {result.value.name}[/green]")
        return True

    def update_profile(self, display_name: str) -> bool:
        return self.loop.run_until_complete(self._update_profile(display_name))

    def serve(self, bind_address: Optional[str] = None, port: Optional[int] = None):
        """Run the API in the foreground"""
        server = ApiServer(debug=self.debug, bind_address=bind_address, port=port)
        self.console.print(f"[bold green]Starting API on {server.bind_address}:{server.port}[/bold green]")
        server.run()

    def close(self):
        self.reconciler.close()
        self.loop.close()
        asyncio.set_event_loop(None)
