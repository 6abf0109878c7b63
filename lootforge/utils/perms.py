"""Permission checks for admin commands."""
from discord.ext import commands
from typing import Callable


def is_owner() -> Callable:
    """Allow the configured OWNER_ID or the application owner.

    Use as a decorator: `@is_owner()`.
    """
    async def predicate(ctx: commands.Context) -> bool:
        settings = getattr(ctx.bot, "settings", None)
        if settings is not None and settings.OWNER_ID and int(settings.OWNER_ID) == ctx.author.id:
            return True
        return await ctx.bot.is_owner(ctx.author)

    return commands.check(predicate)
