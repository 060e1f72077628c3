"""Machine provisioning toolkit.

- ``main``: partition, format, mount and bootstrap a new machine from a
  YAML system profile, then write its fstab and hand over to the profile's
  configuration commands.
- ``sysconf``: install packages, copy system files and enable services on a
  running machine.
- ``homeconf``: symlink a user's dotfiles into their home directory.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
