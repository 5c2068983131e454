from zkarchive.main import run

run()
