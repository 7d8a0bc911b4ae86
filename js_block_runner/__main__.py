from js_block_runner.cli import main

main()
