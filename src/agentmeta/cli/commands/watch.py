"""Metadata watch commands"""

import asyncio
from typing import Optional

import click

from agentmeta.exceptions import AgentMetadataException
from agentmeta.interfaces import IMetadataStreamFactory
from agentmeta.logging import get_logger
from agentmeta.projection import MetadataView
from agentmeta.settings import AgentMetadataSettings, load_settings
from agentmeta.transport import SseMetadataStreamFactory
from agentmeta.watcher import MetadataWatcher
from ..render import render_view

logger = get_logger(__name__)


def create_stream_factory(
        api_host: Optional[str] = None,
        session_token: Optional[str] = None
) -> IMetadataStreamFactory:
    overrides = {}
    if api_host:
        overrides["api_host"] = api_host
    if session_token:
        overrides["session_token"] = session_token
    settings = load_settings(AgentMetadataSettings, **overrides)
    return SseMetadataStreamFactory(settings=settings)


def connection_options(command):
    command = click.option(
        "--token", "session_token", default=None, help="Session token, defaults to AGENTMETA_SESSION_TOKEN"
    )(command)
    command = click.option(
        "--host", "api_host", default=None, help="API host, defaults to AGENTMETA_API_HOST"
    )(command)
    command = click.option("--no-color", is_flag=True, default=False, help="Disable colored output")(command)
    return command


@click.command(name="watch")
@click.argument("agent_id")
@connection_options
@click.option("--refresh", "refresh_interval", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Seconds between re-evaluations, defaults to AGENTMETA_REFRESH_INTERVAL")
@click.option("--count", type=int, default=None, help="Stop after printing this many views")
def watch(
        agent_id: str,
        api_host: Optional[str],
        session_token: Optional[str],
        no_color: bool,
        refresh_interval: Optional[float],
        count: Optional[int],
) -> None:
    """Print the metadata of AGENT_ID on every update and refresh."""
    factory = _factory_or_fail(api_host, session_token)
    try:
        asyncio.run(_watch(factory, agent_id, refresh_interval, count, not no_color))
    except AgentMetadataException as ex:
        raise click.ClickException(str(ex)) from ex
    except KeyboardInterrupt:
        logger.info("Watch stopped by user request")


@click.command(name="show")
@click.argument("agent_id")
@connection_options
@click.option("--wait", type=float, default=10.0, show_default=True,
              help="Seconds to wait for the first snapshot")
def show(
        agent_id: str,
        api_host: Optional[str],
        session_token: Optional[str],
        no_color: bool,
        wait: float,
) -> None:
    """Print the current metadata of AGENT_ID once."""
    factory = _factory_or_fail(api_host, session_token)
    try:
        view = asyncio.run(_show(factory, agent_id, wait))
    except AgentMetadataException as ex:
        raise click.ClickException(str(ex)) from ex
    click.echo(render_view(view, use_colors=not no_color))


def _factory_or_fail(api_host: Optional[str], session_token: Optional[str]) -> IMetadataStreamFactory:
    try:
        return create_stream_factory(api_host=api_host, session_token=session_token)
    except AgentMetadataException as ex:
        raise click.ClickException(str(ex)) from ex


async def _watch(
        factory: IMetadataStreamFactory,
        agent_id: str,
        refresh_interval: Optional[float],
        count: Optional[int],
        use_colors: bool
) -> None:
    async with MetadataWatcher(factory, refresh_interval=refresh_interval) as watcher:
        await watcher.watch(agent_id)
        printed = 0
        async for view in watcher.views():
            click.echo(render_view(view, use_colors=use_colors))
            click.echo("")
            printed += 1
            if count is not None and printed >= count:
                break


async def _show(factory: IMetadataStreamFactory, agent_id: str, wait: float) -> MetadataView:
    async with MetadataWatcher(factory) as watcher:
        await watcher.watch(agent_id)

        async def first_loaded_view() -> MetadataView:
            async for view in watcher.views():
                if not view.is_loading:
                    return view

        try:
            return await asyncio.wait_for(first_loaded_view(), timeout=wait)
        except asyncio.TimeoutError:
            logger.warning("No metadata received from agent %s within %s seconds", agent_id, wait)
            return watcher.view()
