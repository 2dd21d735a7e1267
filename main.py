from rich.pretty import pprint

from argolex import *

parser = ArgumentParser("git", "the stupid content tracker", colorful=True)
parser.add_keyword("verbose", "-v", "--verbose", help="be more talkative")

commit = parser.command("commit", "record changes to the repository", aliases=("ci",))
commit.add_keyword("message", "-m", "--message", help="commit message", kind=ArgKind.SINGLE, required=True)
commit.add_keyword("signoff", "-s", "--signoff", help="add a signed-off-by trailer", default=True)


@commit.handler
def callback(result):
    pprint(result)


if __name__ == '__main__':
    invoke(parser)
