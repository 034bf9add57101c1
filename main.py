from rich.pretty import pprint

from anoma_cli import *
from anoma_cli.cmds import Client, TxTransfer

__styles__ = {
    "program-name": "bold #22C55E",
}


def handler(invocation):
    match invocation.command:
        case Client(TxTransfer(args)) | TxTransfer(args):
            pprint(args)
        case command:
            pprint(command)


if __name__ == '__main__':
    main(handler)
