"""termxfer - terminal file transfer client for SFTP, SCP and FTP.

Philosophy:
- One transfer interface, many protocols
- Brick architecture (self-contained modules)
- Security by design (saved passwords are always encrypted)
- Fail fast with a single, typed error

The termxfer CLI browses remote hosts, moves files in both directions and
remembers connection profiles ("bookmarks") with encrypted passwords.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
