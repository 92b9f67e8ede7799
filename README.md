# scrapeblocker

A background agent for contact-center workstations. While the agent's
browser shows no active customer interaction, scrapeblocker blocks a list
of URLs through the system hosts file and suspends a list of monitored
applications. As soon as an interaction appears, the URLs are unblocked,
browser tabs that were redirected are sent back to where they were, and
the applications are resumed.

## How it works

`scrapeblocker.monitor.ProcessMonitor` runs one round per call to
`step()`; `run()` repeats it every two seconds. In each round it:

1. Reads the current configuration (the processes to monitor and the URLs
   to block) from `scrapeblocker.configstore`. Empty lists fall back to the
   configuration fetched at start-up. The stored configuration is replaced
   whenever the server sends a `refresh` or `configuracion` message over
   the WebSocket.
2. If the user has been marked inactive by the server (an `update`
   message listing the user in `active_users`), it removes the URLs from
   the hosts file and resumes every monitored process. `step()` then
   returns `None`.
3. Otherwise it reads the HTML of the page under
   `https://apps.mypurecloud.com` through the Chrome DevTools endpoint on
   `localhost:9222` and looks for the markers of an open call, SMS or
   e-mail interaction (`page_allows_access`).
   - No interaction, or the page cannot be read: the URLs are written to
     the hosts file as `0.0.0.0 <url>` entries, open tabs on those URLs
     are redirected to `about:blank`, and the monitored processes are
     suspended. `step()` returns `True`.
   - An interaction is open: the entries are removed from the hosts file,
     redirected tabs return to their previous URL, and the processes are
     resumed. `step()` returns `False`.
4. Processes that drop out of the configuration are resumed. Processes are
   only suspended or resumed again when the set of matching processes or
   the blocking decision changes.

## Requirements

- Windows, with rights to edit `C:\Windows\System32\drivers\etc\hosts`
  and to suspend processes in the current session. Elsewhere the session
  is taken from `os.getsid`.
- Chrome running with remote debugging enabled on port 9222.
- A readable file at `resources/icono.ico`, relative to the working
  directory; the command stops at start-up without it.

## Running

```
scrapeblocker
```

The command identifies the current user (without any `DOMAIN\` prefix),
fetches the configuration for the client `latam` from
`http://10.96.16.67:8080/api/v1/apps/latam`, opens the WebSocket session
at `ws://10.96.16.67:8080/api/v1/ws/<user>/latam` in a background thread
and runs the monitor until interrupted with Ctrl-C. It takes no options
besides `--help`; the addresses and the client are fixed in
`scrapeblocker.app`.

## Using the pieces

The building blocks can be used on their own:

```python
from scrapeblocker.monitor import difference, names_to_process_infos, page_allows_access
from scrapeblocker.processes import equal_process_lists, intersect

watched = names_to_process_infos(["notepad.exe", "calc.exe"])
still_there = names_to_process_infos(["notepad.exe"])

gone = difference(watched, still_there)          # [ProcessInfo(name='calc.exe', id=0)]
common = intersect(watched, still_there)         # [ProcessInfo(name='notepad.exe', id=0)]

page_allows_access("<div class='sms-textarea message-input form-control'>")  # True
```

```python
from scrapeblocker.config import ConfigResponse, fetch_configuration
from scrapeblocker.configstore import get_current_config, set_current_config

set_current_config(ConfigResponse.from_dict({"processes": ["calc.exe"], "urls": ["example.com"]}))
get_current_config().urls_to_block   # ['example.com']

fetch_configuration("latam", base_url="http://localhost:8080/api/v1/apps", timeout=5)
```

Hosts-file helpers accept an explicit path, which makes them usable on a
copy of the file:

```python
from scrapeblocker.hosts import add_urls_to_hosts_file, remove_urls_from_hosts_file

add_urls_to_hosts_file(["example.com"], "hosts.copy")       # appends "0.0.0.0 example.com"
remove_urls_from_hosts_file(["example.com"], "hosts.copy")  # drops every line naming it
```

Control messages can be applied without a connection:

```python
from scrapeblocker.domain import User
from scrapeblocker.users import handle_websocket_message

user = User(name="agent", active=True)
handle_websocket_message('{"type": "update", "active_users": [{"name": "agent", "active": false}]}', user)
user.active   # False
```

`ProcessMonitor` accepts its own `chrome_service`, `app_manager` and
`hosts_path`, so a round can be driven against stand-ins.

Failures are reported as exceptions: `ConfigError`, `HostsError`,
`ChromeError` and `ProcessError`; `get_user` raises `OSError` and
`connect_and_keep_open` raises `ConnectionError` when it cannot connect.

## What it does not do

- There is no tray icon or menu: the icon file is only checked for at
  start-up, and the status text is written to the log.
- `UpdateService`, `VersionChecker` and `APIClient` in
  `scrapeblocker.domain` are interfaces only; the package has no update
  checker and does not send users to the server.
- The WebSocket session is opened once; it is not reopened after it
  closes.