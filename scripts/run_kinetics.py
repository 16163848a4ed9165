import argparse
import logging
import os

from monty.serialization import dumpfn

from ParametrizationTools.kinetics.builder import build_kinetics
from ParametrizationTools.kinetics.runner import load_model
from ParametrizationTools.util.errors import ParametrizationError
from ParametrizationTools.util.settings import MAX_PARAM_NO, KineticsSettings

if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description='Compute the kinetics of several models in one go.')
    parser.add_argument('model_files', nargs='+', type=str)
    parser.add_argument('-o', '--output_dir', type=str, default='.')
    parser.add_argument('--max_space_size', type=int, default=MAX_PARAM_NO)
    args = parser.parse_args()

    settings = KineticsSettings(max_space_size=args.max_space_size)
    for model_file in args.model_files:
        name = os.path.splitext(os.path.basename(model_file))[0]
        try:
            kinetics = build_kinetics(load_model(model_file), settings)
        except ParametrizationError as e:
            logging.warning(f'Skipping {model_file}: {e}')
            continue

        output_file = os.path.join(args.output_dir, f'{name}_kinetics.json')
        dumpfn(kinetics, output_file)
        logging.info(f'{name}: {kinetics.space_size} parametrizations')
