"""
Commands module behavioral tests (registration, parse engine, faults, help).

Scope
- Validate eager registration errors (duplicates, reserved names, collisions, cycles).
- Validate every parse-engine branch and its lowercase error message.
- Validate help precedence and subcommand dispatch through names and aliases.
- Validate handler exit codes and help rendering.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Command, ArgKind, tokenize, ParseResult).
"""

import io
import unittest
from unittest import TestCase

from rich.console import Console

from argolex import ArgKind, Command, FaultCode, ParseResult, Status, tokenize
from argolex.faults import (
    UnknownOptionError,
    UncombinableOptionError,
    MissingValueError,
    InvalidValueError,
    UnexpectedArgumentError,
    MissingRequiredOptionError,
    MissingRequiredArgumentError,
    AmbiguousAliasError,
)


def parse(command, line):
    return command.parse(tokenize(line))


def render(renderable):
    console = Console(file=io.StringIO(), width=120)
    console.print(renderable)
    return console.file.getvalue()


def git():
    root = Command("git", "the stupid content tracker")
    root.add_keyword("verbose", "-v", "--verbose", help="be more talkative")
    commit = root.command("commit", "record changes", aliases=("ci",))
    commit.add_keyword("message", "-m", "--message", help="commit message", kind=ArgKind.SINGLE, required=True)
    commit.add_keyword("all", "-a", "--all", help="stage everything")
    remote = root.command("remote", "manage remotes")
    remote.command("add", "add a remote").add_positional("name").add_positional("url")
    return root


def compiler():
    root = Command("cc", "a tiny compiler driver")
    root.add_positional("source", "file to compile")
    root.add_keyword("output", "-o", "--output", kind=ArgKind.SINGLE, default="a.out")
    root.add_keyword("optimize", "-O", kind=ArgKind.SINGLE, type=int, default=0)
    root.add_keyword("debug", "-g")
    root.add_keyword("include", "-I", "--include", kind=ArgKind.MULTIPLE)
    return root


class TestCommandRegistration(TestCase):
    def testIntrospection(self):
        root = git()
        self.assertEqual(root.name, "git")
        self.assertEqual(tuple(root.subcommands), ("commit", "remote"))
        self.assertEqual(root.subcommands["commit"].aliases, ("ci",))
        self.assertEqual(root.keywords[0].name, "help")
        self.assertIs(root.subcommands["commit"].parent, root)
        self.assertIn("name='git'", repr(root))

    def testRootAndPath(self):
        root = git()
        add = root.locate("git remote add")
        self.assertIs(add.root, root)
        self.assertEqual([command.name for command in add.path], ["git", "remote", "add"])
        self.assertEqual(add.route, "git remote add")
        self.assertIsNone(root.locate("git nowhere"))
        self.assertIsNone(root.locate("svn"))

    def testBuilderChains(self):
        root = Command("tool")
        self.assertIs(root.add_keyword("x", "-x"), root)
        self.assertIs(root.add_positional("p"), root)
        self.assertIs(root.add_subcommand(Command("sub")), root)
        self.assertIs(root.add_alias("t"), root)

    def testDuplicateNamesRaise(self):
        root = Command("tool").add_keyword("x", "-x")
        with self.assertRaises(ValueError):
            root.add_keyword("x", "-y")
        with self.assertRaises(ValueError):
            root.add_positional("x")

    def testTakenSpellingsRaise(self):
        root = Command("tool").add_keyword("x", "-x", "--ex")
        with self.assertRaises(ValueError):
            root.add_keyword("y", "-x")
        with self.assertRaises(ValueError):
            root.add_keyword("z", "--ex")
        with self.assertRaises(ValueError):
            root.add_keyword("hidden", "-h")

    def testHelpNameIsReserved(self):
        with self.assertRaises(ValueError):
            Command("tool").add_keyword("help", "-H")

    def testFlagSpellingRules(self):
        root = Command("tool")
        with self.assertRaises(TypeError):
            root.add_keyword("x")
        with self.assertRaises(ValueError):
            root.add_keyword("x", "--one", "--two")
        with self.assertRaises(ValueError):
            root.add_keyword("x", "-a", "-b")
        with self.assertRaises(ValueError):
            root.add_keyword("x", "plain")

    def testKeywordsCannotBePositional(self):
        with self.assertRaises(ValueError):
            Command("tool").add_keyword("x", "-x", kind=ArgKind.POSITIONAL)

    def testPositionalsCannotBeFlags(self):
        with self.assertRaises(ValueError):
            Command("tool").add_positional("x", kind=ArgKind.FLAG)

    def testPositionalKindIsSingle(self):
        root = Command("tool").add_positional("x", kind=ArgKind.POSITIONAL)
        self.assertIs(root.positionals[0].kind, ArgKind.SINGLE)

    def testNegationFlagIsGenerated(self):
        root = Command("tool").add_keyword("enabled", "-e", "--enabled", default=True)
        negation = root.keywords[-1]
        self.assertEqual(negation.name, "no_enabled")
        self.assertEqual(negation.long, "--no-enabled")
        self.assertEqual(negation.negates, "enabled")
        self.assertFalse(negation.default.as_bool())

    def testNoNegationWithoutTrueDefault(self):
        root = Command("tool").add_keyword("quiet", "-q", "--quiet")
        self.assertEqual([argument.name for argument in root.keywords], ["help", "quiet"])

    def testNoNegationWithoutLongSpelling(self):
        root = Command("tool").add_keyword("color", "-c", default=True)
        self.assertEqual([argument.name for argument in root.keywords], ["help", "color"])

    def testNegationCollisionRegistersNothing(self):
        root = Command("tool").add_keyword("no_cache", "--no-cache")
        with self.assertRaises(ValueError):
            root.add_keyword("cache", "--cache", default=True)
        self.assertEqual([argument.name for argument in root.keywords], ["help", "no_cache"])

    def testSiblingRouteCollisionsRaise(self):
        root = Command("tool")
        root.command("build", aliases=("b",))
        with self.assertRaises(ValueError):
            root.command("build")
        with self.assertRaises(ValueError):
            root.command("bundle", aliases=("b",))
        with self.assertRaises(ValueError):
            root.command("b")

    def testAliasAddedAfterAttachmentIsChecked(self):
        root = Command("tool")
        root.command("build")
        test = root.command("test")
        with self.assertRaises(ValueError):
            test.add_alias("build")
        test.add_alias("t")
        self.assertEqual(test.aliases, ("t",))

    def testAliasRepeatingTheNameRaises(self):
        with self.assertRaises(ValueError):
            Command("build", aliases=("build",))

    def testRoutesMustBeIdentifiers(self):
        root = Command("tool")
        with self.assertRaises(ValueError):
            root.command("1st")
        with self.assertRaises(ValueError):
            root.command("if")
        with self.assertRaises(ValueError):
            root.command("x", aliases=("-x",))

    def testCommandsAttachOnce(self):
        first, second, child = Command("a"), Command("b"), Command("c")
        first.add_subcommand(child)
        with self.assertRaises(ValueError):
            second.add_subcommand(child)

    def testCyclesAreRejected(self):
        root = Command("a")
        child = root.command("b")
        with self.assertRaises(ValueError):
            child.add_subcommand(root)
        with self.assertRaises(ValueError):
            child.add_subcommand(child)

    def testSubcommandsMustBeCommands(self):
        with self.assertRaises(TypeError):
            Command("tool").add_subcommand("build")  # type: ignore[arg-type]

    def testHandlerRegistersOnce(self):
        root = Command("tool")

        @root.handler
        def handle(result):
            return 0

        self.assertTrue(callable(handle))
        with self.assertRaises(TypeError):
            root.handler(lambda result: 0)
        with self.assertRaises(TypeError):
            Command("other").handler("not callable")  # type: ignore[arg-type]

    def testCommandValidation(self):
        with self.assertRaises(ValueError):
            Command("   ")
        with self.assertRaises(TypeError):
            Command(None)  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            Command("x", aliases="abc")

    def testRenderingFlagsAreInherited(self):
        root = Command("tool", colorful=True)
        child = root.command("sub")
        self.assertTrue(child.colorful)
        self.assertFalse(child.fancy)
        self.assertFalse(root.command("plain", colorful=False).colorful)


class TestCommandParsing(TestCase):
    def testDefaultsAreSeeded(self):
        result = parse(compiler(), "main.c")
        self.assertTrue(result.ok)
        self.assertEqual(result.get_string("output"), "a.out")
        self.assertEqual(result.get_int("optimize"), 0)
        self.assertIs(result.get_bool("debug"), False)
        self.assertTrue(result.keyword("include").is_none())
        self.assertIsNone(result.keyword("help"))

    def testCompilerLine(self):
        result = parse(compiler(), "main.cpp -o program -O 2 -g -I /usr/include -I /opt/include")
        self.assertIs(result.status, Status.SUCCESS)
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.command_path, "cc")
        self.assertEqual(result.get_string("source"), "main.cpp")
        self.assertEqual(result.get_string(0), "main.cpp")
        self.assertEqual(result.get_string("output"), "program")
        self.assertEqual(result.get_int("optimize"), 2)
        self.assertIs(result.get_bool("debug"), True)
        self.assertEqual(result.get_list("include"), ("/usr/include", "/opt/include"))

    def testMultipleIsGreedyUntilNextFlag(self):
        result = parse(compiler(), "main.c -I a b 3 -g")
        self.assertEqual(result.get_list("include"), ("a", "b", "3"))
        self.assertTrue(result.get_bool("debug"))

    def testMultipleReplacesItsDefault(self):
        root = Command("tool").add_keyword("tag", "-t", kind=ArgKind.MULTIPLE, default=["base"])
        self.assertEqual(parse(root, "").get_list("tag"), ("base",))
        self.assertEqual(parse(root, "-t x -t y").get_list("tag"), ("x", "y"))

    def testAssignSeparatesLongOptionAndValue(self):
        result = parse(compiler(), "main.c --output=prog")
        self.assertEqual(result.get_string("output"), "prog")

    def testClusteredFlags(self):
        root = Command("tool").add_keyword("a", "-a").add_keyword("b", "-b")
        result = parse(root, "-ab")
        self.assertTrue(result.get_bool("a"))
        self.assertTrue(result.get_bool("b"))

    def testNegationFlag(self):
        root = Command("tool")
        root.add_keyword("count", "-c", kind=ArgKind.SINGLE, type=int)
        root.add_keyword("enabled", "-e", "--enabled", default=True)
        result = parse(root, "-c 25 --no-enabled")
        self.assertTrue(result.ok)
        self.assertEqual(result.get_int("count"), 25)
        self.assertIs(result.get_bool("no_enabled"), True)
        self.assertIs(result.get_bool("enabled"), True)

    def testQuotedPositional(self):
        root = Command("ispf")
        root.command("view").add_positional("dataset")
        result = parse(root, 'view "MY.DATA(MEMBER)"')
        self.assertEqual(result.command_path, "ispf view")
        self.assertEqual(result.get_string("dataset"), "MY.DATA(MEMBER)")

    def testOptionalPositionalGetsItsDefault(self):
        root = Command("tool").add_positional("first").add_positional("second", required=False, default="x")
        result = parse(root, "a")
        self.assertEqual(result.positional_names, ["first", "second"])
        self.assertEqual(result.get_string("second"), "x")

    def testMultiplePositionalCollectsStrings(self):
        root = Command("rm").add_positional("paths", kind=ArgKind.MULTIPLE).add_keyword("force", "-f")
        result = parse(root, "a.txt 2 b.txt -f")
        self.assertEqual(result.get_list("paths"), ("a.txt", "2", "b.txt"))
        self.assertTrue(result.get_bool("force"))

    def testTypedPositional(self):
        root = Command("sleep").add_positional("seconds", type=float)
        self.assertEqual(parse(root, "2").get_float("seconds"), 2.0)

    def testResultCanBeThreaded(self):
        result = ParseResult()
        returned = Command("tool").parse(tokenize(""), result)
        self.assertIs(returned, result)
        with self.assertRaises(TypeError):
            Command("tool").parse(tokenize(""), {})


class TestCommandDispatch(TestCase):
    def testSubcommandByName(self):
        result = parse(git(), 'commit -m "initial import"')
        self.assertEqual(result.command_path, "git commit")
        self.assertEqual(result.get_string("message"), "initial import")

    def testSubcommandByAlias(self):
        result = parse(git(), "ci -m x")
        self.assertTrue(result.ok)
        self.assertEqual(result.command_path, "git commit")

    def testNestedSubcommands(self):
        result = parse(git(), "remote add origin /srv/repo.git")
        self.assertEqual(result.command_path, "git remote add")
        self.assertEqual(result.get_string("name"), "origin")
        self.assertEqual(result.get_string("url"), "/srv/repo.git")

    def testParentKeywordsSurviveDispatch(self):
        result = parse(git(), "-v commit -m x")
        self.assertTrue(result.get_bool("verbose"))
        self.assertEqual(result.get_string("message"), "x")

    def testChildResetsPositionals(self):
        root = Command("tool").add_positional("target", required=False)
        root.command("run").add_positional("script")
        result = parse(root, "run job.sh")
        self.assertEqual(result.positional_names, ["script"])

    def testExactNameWinsOverAlias(self):
        root = Command("tool")
        build = root.command("build")
        other = root.command("other")
        other._aliases.append("build")  # bypasses registration checks
        self.assertEqual(parse(root, "build").command_path, "tool build")
        self.assertIsNotNone(build)

    def testAmbiguousAlias(self):
        root = Command("tool")
        for name in ("alpha", "beta"):
            root.command(name)._aliases.append("x")  # bypasses registration checks
        result = parse(root, "x")
        self.assertTrue(result.failed)
        self.assertIsInstance(result.fault, AmbiguousAliasError)
        self.assertEqual(result.error_message, "ambiguous alias 'x' matches subcommands alpha, beta")


class TestCommandHelp(TestCase):
    def testLongHelp(self):
        result = parse(git(), "--help")
        self.assertIs(result.status, Status.HELP_REQUESTED)
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.command_path, "git")

    def testHelpBelongsToItsCommand(self):
        self.assertEqual(parse(git(), "commit --help").command_path, "git commit")
        self.assertEqual(parse(git(), "--help commit").command_path, "git")

    def testHelpWinsOverErrors(self):
        result = parse(git(), "commit --bogus 1 2 3 -h")
        self.assertTrue(result.help_requested)
        self.assertEqual(result.command_path, "git commit")

    def testHelpAfterASubcommandWinsOverParentErrors(self):
        result = parse(git(), "--bogus commit --help")
        self.assertIs(result.status, Status.HELP_REQUESTED)
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.command_path, "git commit")

        result = parse(git(), "-vx commit -h")
        self.assertIs(result.status, Status.HELP_REQUESTED)
        self.assertEqual(result.command_path, "git commit")

    def testHelpReachesTheDeepestCommand(self):
        result = parse(git(), "--bogus remote add origin -h")
        self.assertTrue(result.help_requested)
        self.assertEqual(result.command_path, "git remote add")

    def testHelpSeedsTheDefaultsOfTheCommandReached(self):
        result = parse(git(), "--bogus commit -h")
        self.assertIs(result.get_bool("all"), False)
        self.assertIsNone(result.keyword("help"))

    def testHelpWinsOverMissingValue(self):
        self.assertTrue(parse(git(), "commit -m -h").help_requested)

    def testHelpInsideACluster(self):
        self.assertTrue(parse(git(), "commit -ah").help_requested)

    def testHelpSkipsTheHandler(self):
        calls = []
        root = Command("tool", handler=calls.append)
        parse(root, "-h")
        self.assertEqual(calls, [])


class TestCommandFaults(TestCase):
    def assertFault(self, result, cls, message, code):
        self.assertIs(result.status, Status.PARSE_ERROR)
        self.assertEqual(result.exit_code, 1)
        self.assertIsInstance(result.fault, cls)
        self.assertEqual(result.error_message, message)
        self.assertIs(result.fault.code, code)

    def testUnknownOption(self):
        result = parse(git(), "commit --mesage x")
        self.assertFault(result, UnknownOptionError, "unknown option: --mesage", FaultCode.UNKNOWN_OPTION)
        self.assertIn("--message", result.fault.hint)
        self.assertEqual(result.command_path, "git commit")

    def testUnknownShortOption(self):
        result = parse(compiler(), "main.c -z")
        self.assertFault(result, UnknownOptionError, "unknown option: -z", FaultCode.UNKNOWN_OPTION)

    def testUnknownOptionInCluster(self):
        result = parse(compiler(), "main.c -gx")
        self.assertFault(
            result, UnknownOptionError, "unknown option in combined flags: -x", FaultCode.UNKNOWN_OPTION,
        )

    def testValueOptionCannotBeCombined(self):
        root = Command("tool").add_keyword("output", "-o", kind=ArgKind.SINGLE).add_keyword("verbose", "-v")
        result = parse(root, "-ov")
        self.assertFault(
            result,
            UncombinableOptionError,
            "option -o requires a value and cannot be combined",
            FaultCode.UNCOMBINABLE_OPTION,
        )
        self.assertIn("requires a value", result.error_message)

    def testMissingValueAtEnd(self):
        result = parse(git(), "commit -m")
        self.assertFault(
            result, MissingValueError, "option -m, --message <value> requires a value", FaultCode.MISSING_VALUE,
        )

    def testMissingValueBeforeFlag(self):
        result = parse(compiler(), "main.c -o -g")
        self.assertFault(
            result, MissingValueError, "option -o, --output <value> requires a value", FaultCode.MISSING_VALUE,
        )

    def testInvalidOptionValue(self):
        result = parse(compiler(), "main.c -O fast")
        self.assertFault(result, InvalidValueError, "invalid value for option -O <value>", FaultCode.INVALID_VALUE)

    def testOperatorIsNotAValue(self):
        result = parse(compiler(), "main.c -o (")
        self.assertFault(
            result, InvalidValueError, "invalid value for option -o, --output <value>", FaultCode.INVALID_VALUE,
        )

    def testInvalidPositionalValue(self):
        root = Command("sleep").add_positional("seconds", type=int)
        result = parse(root, "soon")
        self.assertFault(
            result,
            InvalidValueError,
            "invalid value for positional argument 'seconds'",
            FaultCode.INVALID_ARGUMENT,
        )

    def testUnexpectedArgument(self):
        result = parse(compiler(), "main.c extra.c")
        self.assertFault(
            result, UnexpectedArgumentError, "unexpected argument: extra.c", FaultCode.UNEXPECTED_ARGUMENT,
        )

    def testMissingRequiredOption(self):
        result = parse(git(), "commit -a")
        self.assertFault(
            result,
            MissingRequiredOptionError,
            "missing required option: -m, --message <value>",
            FaultCode.MISSING_REQUIRED_OPTION,
        )

    def testMissingRequiredPositional(self):
        result = parse(compiler(), "-g")
        self.assertFault(
            result,
            MissingRequiredArgumentError,
            "missing required positional argument: source",
            FaultCode.MISSING_REQUIRED_ARGUMENT,
        )

    def testFaultsAreLogged(self):
        with self.assertLogs("argolex", level="DEBUG") as logs:
            parse(compiler(), "-g")
        self.assertTrue(any("MISSING_REQUIRED_ARGUMENT" in line for line in logs.output))


class TestCommandHandlers(TestCase):
    def testHandlerReturnsExitCode(self):
        root = Command("tool", handler=lambda result: 3)
        self.assertEqual(parse(root, "").exit_code, 3)

    def testNoneMeansSuccess(self):
        seen = []

        def handle(result):
            seen.append(result.command_path)

        root = Command("tool")
        root.command("sub", handler=handle)
        result = parse(root, "sub")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(seen, ["tool sub"])

    def testHandlerIsSkippedOnError(self):
        calls = []
        root = Command("tool", handler=calls.append).add_positional("x")
        self.assertTrue(parse(root, "").failed)
        self.assertEqual(calls, [])

    def testNonIntegerReturnRaises(self):
        root = Command("tool", handler=lambda result: "done")
        with self.assertRaises(TypeError):
            parse(root, "")

    def testHandlerExceptionsPropagate(self):
        def handle(result):
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            parse(Command("tool", handler=handle), "")


class TestCommandRendering(TestCase):
    def testUsageLine(self):
        output = render(compiler().render_help())
        self.assertIn("usage: cc [options] <source>", output)
        self.assertIn("a tiny compiler driver", output)

    def testSections(self):
        output = render(compiler().render_help())
        self.assertIn("arguments:", output)
        self.assertIn("options:", output)
        self.assertIn("-o, --output <value>", output)
        self.assertIn("(default: a.out)", output)
        self.assertIn("-I, --include <value>...", output)
        self.assertIn("show this help message and exit", output)

    def testRequiredMarkers(self):
        output = render(git().locate("git commit").render_help())
        self.assertIn("usage: git commit [options]", output)
        self.assertIn("[required]", output)

    def testOptionalPositionalMarker(self):
        root = Command("tool").add_positional("target", required=False)
        output = render(root.render_help())
        self.assertIn("usage: tool [options] [target]", output)
        self.assertIn("[optional]", output)

    def testCommandsTableAndFooter(self):
        output = render(git().render_help())
        self.assertIn("usage: git [options] <command>", output)
        self.assertIn("commit (ci)", output)
        self.assertIn("remote", output)
        self.assertIn("use 'git <command> --help' for more information on a command", output)

    def testLayoutFollowsTheTargetConsole(self):
        description = "x" * 60 + " " + "y" * 60
        root = Command("tool").add_keyword("long", "--long", help=description)
        console = Console(file=io.StringIO(), width=200)
        console.print(root.render_help(console=console))
        self.assertIn(description, console.file.getvalue())

        console = Console(file=io.StringIO(), width=60)
        console.print(root.render_help(console=console))
        self.assertNotIn(description, console.file.getvalue())
        self.assertTrue(all(len(line) <= 60 for line in console.file.getvalue().splitlines()))

    def testRejectsNonConsoles(self):
        with self.assertRaises(TypeError):
            Command("tool").render_help(console=io.StringIO())

    def testFancyHelpIsPanelled(self):
        output = render(Command("tool", fancy=True).render_help())
        self.assertIn("TOOL HELP", output)


if __name__ == "__main__":
    unittest.main()
