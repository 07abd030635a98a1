"""Built-in CLI sub-commands for spotify-web-api.

* :mod:`~spotify_web_api.commands.auth` -- log in, inspect and forget
  cached tokens.
* :mod:`~spotify_web_api.commands.session` -- helpers shared by every
  command: building a client on the cached token and mapping errors to
  exit codes.
"""
