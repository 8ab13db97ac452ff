"""
Gene Regulatory Network - Command Line Interface

Usage:
    grn-sim random --seed 42 --steps 2000          # writes 42.grn
    grn-sim graph network.genes --name graph       # writes graph.dot
    grn-sim run genome.txt --binary --init --steps 500 --plot run.png

For programmatic use, import grn instead.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .genome import random_genome
from .expression import Protein
from .loader import SourceUnreadableError, read_binary_text_file, read_genes_file
from .network import GeneRegulatoryNetwork, GRNConfig, INIT_PERIOD
from .report import print_state, write_dot_graph, write_results

# Inputs injected before drawing a graph
DEMO_INPUTS = [
    (0.0, 0x00000000),
    (0.1, 0x0000FFFF),
    (0.1, 0xFFFF0000),
    (0.1, 0xFFFFFFFF),
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="grn-sim",
        description="Artificial gene regulatory network simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  random   Random genome, free-run, append the table to <seed>.grn
  graph    Load a genes file, inject demo inputs, write a dot graph
  run      Load a genome file, optionally stabilize, free-run, write the table
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_random = sub.add_parser("random", help="Run a random network")
    p_random.add_argument("--seed", type=int, default=42, help="Random seed")
    p_random.add_argument("--words", type=int, default=128, help="Genome length in words")
    p_random.add_argument("--steps", type=int, default=2000, help="Timesteps to run")
    p_random.add_argument("--output", help="Table file (default: <seed>.grn)")
    p_random.add_argument("--no-outputs", action="store_true",
                          help="Discard P genes before running")

    p_graph = sub.add_parser("graph", help="Write a dot graph of a genes file")
    p_graph.add_argument("genes_file")
    p_graph.add_argument("--name", default="graph", help="Graph and file name")

    p_run = sub.add_parser("run", help="Run a network loaded from a file")
    p_run.add_argument("genome_file")
    p_run.add_argument("--binary", action="store_true",
                       help="File holds '0'/'1' characters instead of integers")
    p_run.add_argument("--init", action="store_true", help="Stabilize before running")
    p_run.add_argument("--steps", type=int, default=1000, help="Timesteps to run")
    p_run.add_argument("--output", default="run.grn", help="Table file")
    p_run.add_argument("--plot", help="Save a concentration plot to this path")
    p_run.add_argument("--init-period", type=int, default=INIT_PERIOD,
                       help="Stabilization step cap")

    return parser.parse_args(argv)


def _drop_outputs(grn: GeneRegulatoryNetwork):
    """Rebuild a network without its P genes."""
    words = [w for g in grn.tf_genes for w in g.encode()]
    return GeneRegulatoryNetwork(words, config=grn.config)


def cmd_random(args) -> int:
    grn = GeneRegulatoryNetwork(random_genome(args.words, args.seed))
    if args.no_outputs:
        grn = _drop_outputs(grn)

    print(f"Network: {grn.num_tf_genes} TF genes, {grn.num_p_genes} P genes, umax={grn.umax}")
    history = grn.run(args.steps)
    path = write_results(args.output or f"{args.seed}.grn", grn, history)
    print(f"Wrote {len(history)} timesteps to {path}")
    return 0


def cmd_graph(args) -> int:
    grn = GeneRegulatoryNetwork(read_genes_file(args.genes_file))
    grn.inject_inputs([Protein.input(c, sig) for c, sig in DEMO_INPUTS])
    path = write_dot_graph(grn, args.name)
    print(f"Wrote graph to {path}")
    return 0


def cmd_run(args) -> int:
    genome = read_binary_text_file(args.genome_file) if args.binary else read_genes_file(args.genome_file)
    grn = GeneRegulatoryNetwork(genome, config=GRNConfig(init_period=args.init_period))
    print(f"Network: {grn.num_tf_genes} TF genes, {grn.num_p_genes} P genes, umax={grn.umax}")

    if args.init:
        steps = grn.init()
        print(f"Stabilized after {steps} steps (at rest: {grn.reached_rest})")

    history = grn.run(args.steps)
    write_results(args.output, grn, history)
    print_state(grn)

    if args.plot:
        from .visualization import plot_concentrations
        plot_concentrations(history, grn.labels(), save_path=args.plot)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    commands = {"random": cmd_random, "graph": cmd_graph, "run": cmd_run}
    try:
        return commands[args.command](args)
    except SourceUnreadableError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
