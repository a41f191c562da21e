# gator

`gator` is a small command-line RSS aggregator. It keeps users, feeds,
feed follows and posts in a local SQLite database, lets each user follow
the feeds they care about, and repeatedly fetches feeds and stores their
items as posts. It uses only the Python standard library.

## Installation

```
pip install .
```

This installs the `gator` command. The same entry point can also be run
as `python -m gator.cli`.

## Configuration

`gator` reads its settings from `~/.gatorconfig.json`:

```json
{"db_url": "/home/me/gator.db", "current_user_name": ""}
```

- `db_url` – the SQLite database file, given as a plain path or as
  `sqlite://<path>`. The tables are created on first use.
- `current_user_name` – the logged-in user. `gator login` and
  `gator register` rewrite the file with the new name.

The file must exist and `db_url` must be set before any command runs;
otherwise `gator` reports the problem and exits with status 1.

## Usage

```
gator <command> [arguments...]
```

| Command                | What it does                                              |
|------------------------|-----------------------------------------------------------|
| `register <name>`      | Create a user and make it the current user                |
| `login <name>`         | Switch to an existing user                                |
| `users`                | List all users, marking the current one with `(current)`  |
| `reset`                | Delete every user, and with them their feeds and follows  |
| `addfeed <name> <url>` | Add a feed owned by the current user and follow it        |
| `feeds`                | List every feed with the user who added it                |
| `follow <url>`         | Follow an already added feed as the current user          |
| `following`            | List the feeds the current user follows                   |
| `unfollow <url>`       | Stop following a feed                                     |
| `agg`                  | Fetch one feed every 2 seconds and store its items        |

`addfeed`, `follow`, `following` and `unfollow` act for the current user
and fail if that user is not in the database.

### Example session

```
gator register alice
gator addfeed "Example News" https://example.com/feed.xml
gator following
gator agg
```

On each round, `agg` picks the feed fetched longest ago (feeds never
fetched come first), marks it as fetched, downloads it with a 2-second
timeout and saves each item as a post. An item whose link is already
stored is skipped; publication dates are kept only when written in the
RFC 1123 form with a numeric zone (`Mon, 02 Jan 2006 15:04:05 -0700`).
HTML entities in titles and descriptions are unescaped. `agg` runs until
interrupted with Ctrl-C (exit status 130) or until a round fails.

An unknown command, a wrong number of arguments, or a missing user or
feed is reported on standard error as `gator: <message>`, and the
command exits with status 1.

## Using it as a library

- `gator.config` – `read()`, `write()` and `Config.set_user()` for the
  configuration file; `config_path()` gives its default location.
- `gator.database` – `connect(url)` returns a `Queries` object with the
  queries for users, feeds, feed follows and posts. Failures raise
  `DatabaseError`, `RecordNotFound` or `UniqueViolation`;
  `Queries.transaction()` groups writes so they commit or roll back
  together.
- `gator.fetch` – `fetch_feed(url, timeout)` downloads an RSS feed and
  `parse_feed(data)` parses one into `RSSFeed` and `RSSItem` objects.
- `gator.scrape` – `scrape_feeds(queries, fetch)` performs a single
  round of `agg` and returns the `Post` objects it created.
- `gator.commands` and `gator.handlers` – the `Commands` registry and
  the handlers behind each command; `gator.cli.build_commands()` builds
  the full registry.

## What it does not do

There is no command to read the posts that `agg` collects. They are
stored in the `posts` table and can be queried from Python with
`Queries.get_posts_for_user(feed_id, limit)`, but the command line only
manages users, feeds and follows and fills the database.

## Running the tests

```
pip install .[test]
pytest
```