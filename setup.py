# -*- coding: utf-8 -*-
from setuptools import setup

packages = \
['cpxlib',
 'cpxlib.devices',
 'cpxlib.devices.ledgercomm',
 'cpxlib.devices.ledgercomm.interfaces']

modules = \
['cpxhw']
install_requires = \
['ecdsa>=0.14,<1',
 'hidapi>=0.14.0']

extras_require = \
{'test': ['pytest>=7']}

entry_points = \
{'console_scripts': ['cpxhw = cpxlib._cli:main']}

setup_kwargs = {
    'name': 'cpxhw',
    'version': '0.3.0',
    'description': 'Encode CPX transfer transactions and sign them with a Ledger device',
    'long_description': "# CPX Ledger Interface\n\nA Python library and command line tool to serialize CPX transfer transactions and sign them with a Ledger device running the CPX application.\n\n## Install\n\n```\npip3 install .\n```\n\n## Usage\n\n```\ncpxhw enumerate\ncpxhw getpubkey --account 0\ncpxhw encodetx <from pubkey> <to pubkey> 1.2 --nonce 1 --gas-price 3 --gas-limit 300\ncpxhw signtx <tx hex> --account 0\n```\n\nUse `-d tcp:127.0.0.1:9999` to talk to the Speculos emulator.\n\nAll output is JSON sent to `stdout`.\n",
    'long_description_content_type': 'text/markdown',
    'author': 'CPX developers',
    'maintainer': 'None',
    'maintainer_email': 'None',
    'packages': packages,
    'py_modules': modules,
    'install_requires': install_requires,
    'extras_require': extras_require,
    'entry_points': entry_points,
    'python_requires': '>=3.8',
}


setup(**setup_kwargs)
