import click


class CommaSeparated(click.ParamType):
    name = "comma_separated"

    def convert(self, value, param, ctx):
        if isinstance(value, (list, tuple)):
            return list(value)
        items = [item.strip() for item in value.split(",")]
        if not all(items):
            self.fail(f"{value} is not a valid comma-separated list", param, ctx)
        return items
