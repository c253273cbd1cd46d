"""
Shell completion scripts.
"""

from typing import Dict


def get_bash_completion() -> str:
    """Bash completion script."""
    return """
# Bash completion for cargo-temp
_cargo_temp_completion() {
    local cur prev opts
    COMPREPLY=()
    cur="${COMP_WORDS[COMP_CWORD]}"
    prev="${COMP_WORDS[COMP_CWORD-1]}"

    if [[ ${COMP_CWORD} == 1 ]]; then
        opts="new render info config completion --lib --name --bench --edition --version --help"
        COMPREPLY=( $(compgen -W "${opts}" -- ${cur}) )
        return 0
    fi

    if [[ "${COMP_WORDS[1]}" == "config" && ${COMP_CWORD} == 2 ]]; then
        opts="show validate"
        COMPREPLY=( $(compgen -W "${opts}" -- ${cur}) )
        return 0
    fi

    if [[ "${COMP_WORDS[1]}" == "completion" ]]; then
        COMPREPLY=( $(compgen -W "bash zsh fish" -- ${cur}) )
        return 0
    fi

    case "${prev}" in
        --edition|-e)
            COMPREPLY=( $(compgen -W "2015 2018 2021 2024" -- ${cur}) )
            return 0
            ;;
        --name|-n|--bench|-b)
            return 0
            ;;
        *)
            opts="--lib --name --bench --edition --help"
            COMPREPLY=( $(compgen -W "${opts}" -- ${cur}) )
            return 0
            ;;
    esac
}

complete -F _cargo_temp_completion cargo-temp
"""


def get_zsh_completion() -> str:
    """Zsh completion script."""
    return """
#compdef cargo-temp

_cargo_temp() {
    local context state state_descr line
    typeset -A opt_args

    _arguments -C \
        '1: :_cargo_temp_commands' \
        '*:: :->args'

    case $state in
        args)
            case $words[1] in
                new|render)
                    _arguments \
                        '(-l --lib)'{-l,--lib}'[Create a library instead of a binary]' \
                        '(-n --name)'{-n,--name}'[Name of the temporary crate]:name:' \
                        '(-b --bench)'{-b,--bench}'[Add a criterion benchmark]:bench name:' \
                        '(-e --edition)'{-e,--edition}'[Rust edition]:edition:(2015 2018 2021 2024)' \
                        '*:dependency:'
                    ;;
                config)
                    _arguments '1: :(show validate)'
                    ;;
                completion)
                    _arguments '1: :(bash zsh fish)'
                    ;;
            esac
            ;;
    esac
}

_cargo_temp_commands() {
    local commands
    commands=(
        'new:Create a temporary project and open a shell in it'
        'render:Print the Cargo.toml entries of dependencies'
        'info:Show dependency syntax and configuration help'
        'config:Configuration management commands'
        'completion:Generate shell completion scripts'
    )
    _describe 'command' commands
}

_cargo_temp "$@"
"""


def get_fish_completion() -> str:
    """Fish completion script."""
    return """
# Fish completion for cargo-temp

complete -c cargo-temp -n '__fish_use_subcommand' -a 'new' -d 'Create a temporary project'
complete -c cargo-temp -n '__fish_use_subcommand' -a 'render' -d 'Print Cargo.toml entries'
complete -c cargo-temp -n '__fish_use_subcommand' -a 'info' -d 'Show information'
complete -c cargo-temp -n '__fish_use_subcommand' -a 'config' -d 'Configuration management'
complete -c cargo-temp -n '__fish_use_subcommand' -a 'completion' -d 'Shell completion scripts'
complete -c cargo-temp -n '__fish_use_subcommand' -l version -d 'Show version'
complete -c cargo-temp -n '__fish_use_subcommand' -l help -d 'Show help'

complete -c cargo-temp -n '__fish_seen_subcommand_from new render' -s l -l lib -d 'Create a library'
complete -c cargo-temp -n '__fish_seen_subcommand_from new render' -s n -l name -d 'Crate name' -x
complete -c cargo-temp -n '__fish_seen_subcommand_from new render' -s b -l bench -d 'Add a benchmark' -x
complete -c cargo-temp -n '__fish_seen_subcommand_from new render' -s e -l edition -d 'Rust edition' -x -a '2015 2018 2021 2024'

complete -c cargo-temp -n '__fish_seen_subcommand_from config' -a 'show' -d 'Show current config'
complete -c cargo-temp -n '__fish_seen_subcommand_from config' -a 'validate' -d 'Validate config file'

complete -c cargo-temp -n '__fish_seen_subcommand_from completion' -x -a 'bash zsh fish'
"""


def get_completion_scripts() -> Dict[str, str]:
    """Return all completion scripts."""
    return {
        "bash": get_bash_completion(),
        "zsh": get_zsh_completion(),
        "fish": get_fish_completion(),
    }
