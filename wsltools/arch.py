"""Arch Linux specific commands and file contents"""

from textwrap import dedent

USER_GROUPS = ["wheel", "adm", "log", "systemd-journal"]


def install_packages(packages: list[str]) -> str:
  pkgs = " ".join(packages)
  return f"pacman -S --noconfirm --needed {pkgs}"


def create_user(username: str) -> str:
  groups = ",".join(USER_GROUPS)
  return f"useradd -m -g users -G {groups} -s /bin/bash {username}"


def run_as(username: str, command: str) -> str:
  return f"sudo -u {username} {command}"


def sudoers_entries() -> list[str]:
  return ["%wheel ALL=(ALL) ALL"]


def bashrc() -> list[str]:
  return dedent("""\
    # ~/.bashrc

    # If not running interactively, don't do anything
    [[ $- != *i* ]] && return

    # Basic aliases
    alias ls='ls --color=auto'
    alias ll='ls -la'
    alias la='ls -la'
    alias grep='grep --color=auto'
    alias ..='cd ..'
    alias ...='cd ../..'

    # PS1 configuration
    PS1='\\[\\033[01;32m\\]\\u@\\h\\[\\033[00m\\]:\\[\\033[01;34m\\]\\w\\[\\033[00m\\]\\$ '

    # Enable bash completion
    if ! shopt -oq posix; then
      if [ -f /usr/share/bash-completion/bash_completion ]; then
        . /usr/share/bash-completion/bash_completion
      elif [ -f /etc/bash_completion ]; then
        . /etc/bash_completion
      fi
    fi
  """).splitlines()


def ssh_key_commands(username: str) -> list[str]:
  ssh_dir = f"/home/{username}/.ssh"
  return [
    run_as(username, f"mkdir -p {ssh_dir}"),
    run_as(username, f"chmod 700 {ssh_dir}"),
    run_as(username, f'ssh-keygen -t ed25519 -f {ssh_dir}/id_ed25519 -N "" -C "{username}@archwsl2"'),
    run_as(username, f"cp {ssh_dir}/id_ed25519.pub {ssh_dir}/authorized_keys"),
    run_as(username, f"chmod 600 {ssh_dir}/authorized_keys"),
  ]


def dev_packages() -> list[str]:
  return ["git", "vim", "nano", "code", "curl", "wget", "base-devel"]


def dev_environment_commands(username: str) -> list[str]:
  home = f"/home/{username}"
  return [
    install_packages(dev_packages()),
    run_as(username, f"mkdir -p {home}/Projects"),
    run_as(username, f"mkdir -p {home}/.local/share"),
    run_as(username, "git config --global init.defaultBranch main"),
    run_as(username, "git config --global pull.rebase false"),
  ]
