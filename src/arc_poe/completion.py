"""Shell completion scripts generated from the ``arc`` argument parser.

The parser is walked once to collect, for every sub-command path (``""``,
``"port"``, ``"port get"``, ...), the words that may follow it.  Each shell
script recomputes the path from the words already typed, skipping options
and the values of options that take one.
"""

from __future__ import annotations

import argparse
from collections.abc import Iterator, Mapping

SHELLS: tuple[str, ...] = ("bash", "zsh", "fish")


def _walk(
    parser: argparse.ArgumentParser, path: str = ""
) -> Iterator[tuple[str, list[str], list[str]]]:
    """Yield ``(path, candidate words, value-taking options)`` per sub-command."""
    words: list[str] = []
    value_opts: list[str] = []
    children: list[tuple[str, argparse.ArgumentParser]] = []
    # argparse has no public API for listing a parser's actions or
    # sub-parsers; _actions and _SubParsersAction are private but have been
    # stable since Python 3.2.  test_completion_walks_every_command pins them.
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            for name, sub in action.choices.items():
                words.append(name)
                children.append((name, sub))
        elif action.option_strings:
            words.extend(action.option_strings)
            if action.nargs != 0:
                value_opts.extend(action.option_strings)
        elif action.choices:
            words.extend(str(choice) for choice in action.choices)
    yield path, words, value_opts
    for name, sub in children:
        yield from _walk(sub, f"{path} {name}".strip())


def generate(
    shell: str,
    parser: argparse.ArgumentParser,
    prog: str,
    extra: Mapping[str, list[str]] | None = None,
) -> str:
    """Return a completion script for *shell*.

    Args:
        shell: One of :data:`SHELLS`.
        parser: Top-level parser of the program.
        prog: Command name the script registers for.
        extra: Additional candidate words per sub-command path.

    Raises:
        ValueError: If *shell* is not supported.
    """
    tree = list(_walk(parser))
    extra = extra or {}
    table = [(path, words + list(extra.get(path, []))) for path, words, _ in tree]
    value_opts = sorted({opt for _, _, opts in tree for opt in opts})
    func = "_" + prog.replace("-", "_")

    if shell == "bash":
        return _bash(table, value_opts, prog, func)
    if shell == "zsh":
        return (
            "#compdef " + prog + "\n"
            "autoload -U +X bashcompinit && bashcompinit\n"
            + _bash(table, value_opts, prog, func)
        )
    if shell == "fish":
        return _fish(table, value_opts, prog, func)
    raise ValueError(f"Unsupported shell {shell!r}; choose from {', '.join(SHELLS)}")


def _bash(table: list[tuple[str, list[str]]], value_opts: list[str], prog: str, func: str) -> str:
    lines = [
        f"{func}() {{",
        '    local cur="${COMP_WORDS[COMP_CWORD]}" path="" word i candidates',
        "    for ((i = 1; i < COMP_CWORD; i++)); do",
        '        word="${COMP_WORDS[i]}"',
        '        case "$word" in',
    ]
    if value_opts:
        lines.append(f"            {'|'.join(value_opts)}) ((i++)); continue ;;")
    lines += [
        "            -*) continue ;;",
        "        esac",
        '        path="${path:+$path }$word"',
        "    done",
        '    case "$path" in',
    ]
    for path, words in table:
        lines.append(f'        "{path}") candidates="{" ".join(words)}" ;;')
    lines += [
        '        *) candidates="" ;;',
        "    esac",
        '    COMPREPLY=($(compgen -W "$candidates" -- "$cur"))',
        "}",
        f"complete -o default -F {func} {prog}",
        "",
    ]
    return "\n".join(lines)


def _fish(table: list[tuple[str, list[str]]], value_opts: list[str], prog: str, func: str) -> str:
    lines = [
        f"function {func}_path",
        "    set -l tokens (commandline -opc)",
        "    set -e tokens[1]",
        "    set -l path",
        "    set -l skip 0",
        "    for t in $tokens",
        "        if test $skip -eq 1",
        "            set skip 0",
        "            continue",
        "        end",
        "        switch $t",
    ]
    if value_opts:
        lines.append(f"            case {' '.join(value_opts)}")
        lines.append("                set skip 1")
    lines += [
        "            case '-*'",
        "            case '*'",
        "                set path $path $t",
        "        end",
        "    end",
        '    test "$path" = "$argv[1]"',
        "end",
        "",
    ]
    for path, words in table:
        lines.append(
            f"complete -c {prog} -f -n '{func}_path \"{path}\"' -a '{' '.join(words)}'"
        )
    lines.append("")
    return "\n".join(lines)
