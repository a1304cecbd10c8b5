"""Run the decision log analysis from the command line. Built on examples given in Click documentation."""
import logging

import click

from pygating import settings
from pygating.core import io
from pygating.decision_log import DecisionLogs, EmptyResultSetError, UsageError

logger = logging.getLogger("pygating")


@click.command()
@click.argument("args", nargs=-1, metavar="DIRECTORY [START END]")
@click.option(
    "--sampling-rate",
    type=click.FloatRange(min=0, min_open=True),
    default=settings.SAMPLING_RATE_HZ,
    show_default=True,
    help="Rate (Hz) at which gating decisions are made.",
)
@click.option("--no-recursive", is_flag=True, help="Only read logs in the top directory.")
@click.option("--save-plot", type=click.Path(dir_okay=False), help="Save the duty cycle plot to this file.")
@click.option("--csv", "csv_file", type=click.Path(dir_okay=False), help="Write the threshold table to this CSV file.")
@click.option("--json", "as_json", is_flag=True, help="Print the results as JSON instead of text.")
@click.option("-v", "--verbose", is_flag=True, help="Log every dropped decision line.")
def cli(args, sampling_rate, no_recursive, save_plot, csv_file, as_json, verbose):
    """Estimate the duty cycle and beam shutter transition rate from gating decision logs.

    DIRECTORY holds the decision logs (a ZIP archive of it works too). START and END
    optionally restrict the analysis to a delivery, e.g. '9/9/2014 11:06:12 AM'.
    """
    if len(args) not in (1, 3):
        raise click.UsageError(
            f"Expected DIRECTORY or DIRECTORY START END; got {len(args)} argument(s)."
        )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    directory, *window = args
    analyze_kwargs = {"sampling_rate_hz": sampling_rate}
    if window:
        analyze_kwargs.update(start=window[0], end=window[1])
    try:
        if io.is_zipfile(directory):
            logs = DecisionLogs.from_zip(directory, recursive=not no_recursive, **analyze_kwargs)
        else:
            logs = DecisionLogs(directory, recursive=not no_recursive)
            logs.analyze(**analyze_kwargs)
    except NotADirectoryError as e:
        raise click.BadParameter(str(e), param_hint="DIRECTORY")
    except UsageError as e:
        raise click.UsageError(str(e))
    except EmptyResultSetError as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        # unparseable START/END
        raise click.BadParameter(str(e), param_hint="START END")

    if as_json:
        click.echo(logs.results_data(as_json=True))
    else:
        click.echo(logs.results())
    if csv_file:
        logs.to_csv(csv_file)
    if save_plot:
        logs.save_histogram(save_plot)


if __name__ == "__main__":
    cli()
