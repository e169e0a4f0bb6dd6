from xdb.core.helpers.utils import scan
from xdbctl.bootstrap.deps import get_cli


@scan("xdbctl.bootstrap.commands")
def main():
    cli = get_cli()

    try:
        if cli.interactive:
            cli.cmdloop()
        else:
            cli.onecmd(cli.args.namespace)
    finally:
        cli.close()


if __name__ == "__main__":
    main()
