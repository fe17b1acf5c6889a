#! /usr/bin/env python3

# CPX Ledger interaction script

if __name__ == '__main__':
    from cpxlib._cli import main
    main()
else:
    raise ImportError('cpxhw is not importable. Import cpxlib instead')
