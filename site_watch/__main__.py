from site_watch.cli import cli

cli(prog_name="site-watch")
