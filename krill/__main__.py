"""
Main entry point for krill.

    krill [options] [url]

Without a url the builtin start page is shown. With -p/--print (or -r/--raw) one
page is fetched and written to stdout without starting the interactive browser.
"""
import curses
import locale
import os
import shutil
import sys

from krill import __version__, logger, ui
from krill.address import AddressError, parse_url
from krill.browser import BrowserContext, fetch_page
from krill.config import HOME_URL, Config, ConfigError, load_config
from krill.render import DisplayState, render, to_ansi, to_plain

USAGE = """usage: krill [options] [url]

options:
  -s, --tls          connect with TLS
  -S, --no-tls       don't use TLS
  -t, --tor          route connections through the local Tor proxy
  -T, --no-tor       don't use Tor
  -k, --insecure     don't validate TLS certificates
  -w, --wide         start in wide mode
  -e, --emoji        show item types as emoji
  -o, --no-color     don't use colors
  -p, --print        print the rendered page and exit
  -r, --raw          print the raw server response and exit
  -c, --config FILE  use FILE as config file
  -C, --no-config    ignore the config file
  -h, --help         show this help
  -v, --version      show the version
"""

# flag -> (config attribute, value)
OVERRIDES = {
    "-s": ("tls", True), "--tls": ("tls", True),
    "-S": ("tls", False), "--no-tls": ("tls", False),
    "-t": ("tor", True), "--tor": ("tor", True),
    "-T": ("tor", False), "--no-tor": ("tor", False),
    "-k": ("verify_tls", False), "--insecure": ("verify_tls", False),
    "-w": ("wide", True), "--wide": ("wide", True),
    "-e": ("emoji", True), "--emoji": ("emoji", True),
    "-o": ("color", False), "--no-color": ("color", False),
}


class UsageError(Exception):
    pass


def parse_args(argv):
    """Return (options, overrides, url) from the command line arguments."""
    options = {"print": False, "raw": False, "config": None, "no_config": False,
               "help": False, "version": False}
    overrides = {}
    url = None
    args = list(argv)
    while args:
        arg = args.pop(0)
        if arg in OVERRIDES:
            key, value = OVERRIDES[arg]
            overrides[key] = value
        elif arg in ("-p", "--print"):
            options["print"] = True
        elif arg in ("-r", "--raw"):
            options["raw"] = True
        elif arg in ("-c", "--config"):
            if not args:
                raise UsageError(f"{arg} needs a file name")
            options["config"] = args.pop(0)
        elif arg in ("-C", "--no-config"):
            options["no_config"] = True
        elif arg in ("-h", "--help"):
            options["help"] = True
        elif arg in ("-v", "--version"):
            options["version"] = True
        elif arg.startswith("-") and arg != "-":
            raise UsageError(f"unknown option: {arg}")
        elif url is None:
            url = arg
        else:
            raise UsageError(f"only one url please, got {url} and {arg}")
    return options, overrides, url


def print_page(url: str, config: Config, raw: bool = False) -> int:
    """Fetch `url` once and write it to stdout, styled only when stdout is a terminal."""
    page = fetch_page(parse_url(url), config)
    if raw:
        sys.stdout.buffer.write(page.raw)
        sys.stdout.flush()
        return 1 if page.error else 0

    tty = sys.stdout.isatty()
    size = shutil.get_terminal_size()
    display = DisplayState(
        wide_mode=config.wide or not tty,
        emoji_mode=config.emoji,
        color=config.color and tty,
        transport_mode=config.transport_mode,
        rows=size.lines,
        cols=size.columns,
    )
    for line in render(page, display):
        print(to_ansi(line) if display.color else to_plain(line))
    return 1 if page.error else 0


def main(stdscr, config: Config, url=None):
    ui.screen.set_cursor(0)
    context = BrowserContext(config)
    context.stdscr = stdscr
    context.prompt = lambda text: ui.screen.prompt_input(context, text)
    ui.screen.init_colors(context)
    stdscr.keypad(True)
    # wake up regularly so finished fetches are picked up without a key press
    context.input_timeout = 100
    stdscr.timeout(context.input_timeout)
    logger.log(f"krill {__version__} started ({config.transport_mode.value})")

    if url:
        context.open_url(url)

    # Main loop
    while not context.exit_flag:
        context.poll_fetch()
        ui.screen.display(context)
        try:
            key = stdscr.get_wch()
        except curses.error:
            continue  # no key before the timeout
        if key == curses.KEY_RESIZE:
            continue
        if context.mode == "fetching":
            ui.input.handle_fetching_mode(context, key)
        elif context.mode == "search":
            ui.input.handle_search_mode(context, key)
        elif context.mode == "command":
            ui.input.handle_command_mode(context, key)
        else:
            context.status_message = ""
            ui.input.handle_normal_mode(context, key)


def run(argv=None) -> int:
    """
    Parse the command line, load the config and start the browser (or print mode).
    """
    try:
        options, overrides, url = parse_args(sys.argv[1:] if argv is None else argv)
    except UsageError as e:
        print(f"krill: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 2
    if options["help"]:
        print(USAGE)
        return 0
    if options["version"]:
        print(f"krill {__version__}")
        return 0

    try:
        config = Config() if options["no_config"] else load_config(options["config"])
    except ConfigError as e:
        print(f"krill: {e}", file=sys.stderr)
        return 1
    for key, value in overrides.items():
        setattr(config, key, value)

    target = url or (config.start if config.start != HOME_URL else None)
    if target:
        try:
            parse_url(target)
        except AddressError as e:
            print(f"krill: {e}", file=sys.stderr)
            return 1

    if options["print"] or options["raw"]:
        return print_page(target or HOME_URL, config, raw=options["raw"])

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        print("krill: not a terminal, use -p to print a page instead.", file=sys.stderr)
        return 1

    locale.setlocale(locale.LC_ALL, "")
    os.environ.setdefault("ESCDELAY", "25")
    curses.wrapper(main, config, target)
    return 0


if __name__ == "__main__":
    sys.exit(run())
