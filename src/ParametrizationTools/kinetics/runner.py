import argparse
import logging
from typing import Optional, Sequence

from monty.serialization import dumpfn, loadfn

from ParametrizationTools.inputs.model import Kinetics, Model
from ParametrizationTools.kinetics.builder import build_kinetics
from ParametrizationTools.kinetics.filter import ExplicitFilter
from ParametrizationTools.kinetics.translators import create_param_string
from ParametrizationTools.util.settings import MAX_PARAM_NO, KineticsSettings


def get_parser():
    parser = argparse.ArgumentParser(
        description='Compute the kinetic parametrizations of a regulatory '
        'network model.')

    parser.add_argument('model_file',
                        help='The model, a JSON or YAML file',
                        type=str)
    parser.add_argument('-o',
                        '--output_file',
                        help='The file to save the computed kinetics to',
                        type=str,
                        default='kinetics.json')
    parser.add_argument(
        '-n',
        '--print_count',
        help='The number of parametrizations to print after the build',
        type=int,
        default=0)
    parser.add_argument(
        '-d',
        '--databases',
        help=('Parametrization databases, only the parametrizations they '
              'list are printed'),
        nargs='+',
        type=str,
        default=[])
    parser.add_argument(
        '--max_space_size',
        help='The maximal admissible number of parametrizations',
        type=int,
        default=MAX_PARAM_NO)
    parser.add_argument(
        '--relaxed_extremes',
        help=('Leave contexts that can not be forced to an extreme unforced '
              'instead of failing'),
        action='store_true')
    parser.add_argument('-v',
                        '--verbose',
                        help='Log the progress of every species',
                        action='store_true')
    return parser


def load_model(model_file: str) -> Model:
    model = loadfn(model_file)
    if isinstance(model, dict):
        model = Model.from_dict(model)
    return model


def main(argv: Optional[Sequence[str]] = None) -> Kinetics:
    args = get_parser().parse_args(argv)

    model = load_model(args.model_file)
    settings = KineticsSettings(max_space_size=args.max_space_size,
                                strict_extremes=not args.relaxed_extremes)
    log_level = logging.DEBUG if args.verbose else logging.INFO
    kinetics = build_kinetics(model, settings, log_level=log_level)
    dumpfn(kinetics, args.output_file)

    explicit_filter = ExplicitFilter(kinetics, args.databases)
    if explicit_filter.is_active:
        numbers = sorted(explicit_filter.allowed)[:args.print_count]
    else:
        numbers = range(min(args.print_count, kinetics.space_size))
    for number in numbers:
        print(f'{number}:{create_param_string(kinetics, number)}')
    return kinetics


if __name__ == '__main__':
    main()
