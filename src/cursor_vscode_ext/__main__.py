from cursor_vscode_ext.cli import main

if __name__ == "__main__":
    main()
