"""Configuration management for gridtiles.

This module handles loading and managing configuration settings using
Dynaconf. Settings are loaded from multiple locations in order of
increasing priority:

1. Global settings (/etc/gridtiles/)
2. User settings (~/.config/gridtiles/)
3. Current directory settings (./)
4. Environment variable specified file (GRIDTILES_SETTINGS_FILE_FOR_DYNACONF)

Keys used by the package (all optional):

- ``tile_size`` : output tile edge in pixels (256)
- ``projection`` : map projection of the tiles ("EPSG:3857")
- ``data_projection`` : projection of the grid extents ("EPSG:4326")
- ``zoom_levels`` : zoom levels written by the tile writer ([0, 1, 2, 3])
- ``tile_dir`` : output directory of the tile writer ("./tiles")
- ``verbose`` : print progress messages (False)
- ``verbose_level`` : highest ``vprint`` level shown (0)

Attributes
----------
USER_DIR : pathlib.Path
    Path to user configuration directory.
GLOB_DIR : pathlib.Path
    Path to global configuration directory.
CURR_DIR : pathlib.Path
    Path to current working directory.
settings : Dynaconf
    The Dynaconf settings object with loaded configuration.
"""
import os
import pathlib

from dynaconf import Dynaconf

USER_DIR = pathlib.Path("~/.config/gridtiles").expanduser()
GLOB_DIR = pathlib.Path("/etc/gridtiles/")
CURR_DIR = pathlib.Path("./").absolute()
SETTINGS_NAMES = ("settings.toml", ".secrets.toml")
settings_files = [directory / name
                  for directory in (GLOB_DIR, USER_DIR, CURR_DIR)
                  for name in SETTINGS_NAMES]
extra_file = os.getenv("GRIDTILES_SETTINGS_FILE_FOR_DYNACONF")
if extra_file:
    settings_files.append(pathlib.Path(extra_file).absolute())

settings = Dynaconf(
    merge_enabled=True,
    envvar_prefix="GRIDTILES",
    settings_files=settings_files,
    environments=True,
)


def change_env(new_env):
    """Change the active Dynaconf environment.

    Parameters
    ----------
    new_env : str
        The environment name to switch to (e.g., 'development', 'production').
    """
    settings.setenv(new_env)
    settings.reload()
