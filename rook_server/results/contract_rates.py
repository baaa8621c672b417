import sys

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt


def load_rounds(csv_path):
    """Load a simulate CSV; forced bids are flagged but kept."""
    df = pd.read_csv(csv_path)
    expected = {'game_id', 'bid', 'made_contract', 'declarer_team', 'team0_points', 'team1_points'}
    missing = expected - set(df.columns)
    if missing:
        raise ValueError(f"{csv_path} is missing columns: {sorted(missing)}")
    df['made_contract'] = df['made_contract'].astype(str).str.lower() == 'true'
    return df


def contract_rates(df):
    """Per bid amount: how many rounds, how many made, and the make rate."""
    df = df.copy()
    df['declarer_points'] = np.where(df['declarer_team'] == 0, df['team0_points'], df['team1_points'])
    rates = (
        df.groupby('bid')
          .agg(rounds=('made_contract', 'size'),
               made=('made_contract', 'sum'),
               mean_declarer_points=('declarer_points', 'mean'))
          .reset_index()
    )
    rates['make_rate'] = rates['made'] / rates['rounds']
    return rates


def plot_contract_rates(rates, out_path=None):
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.bar(rates['bid'], rates['make_rate'], width=4, alpha=0.8)
    for bid, rate, n in zip(rates['bid'], rates['make_rate'], rates['rounds']):
        ax.annotate(f"n={n}", (bid, rate), ha='center', va='bottom', fontsize=7)

    ax.set_xlabel("Winning bid")
    ax.set_ylabel("Share of contracts made")
    ax.set_ylim(0, 1.05)
    ax.set_title("Contract make rate by winning bid")
    ax.grid(True, axis='y', linestyle=':', alpha=0.5)
    fig.tight_layout()
    if out_path is not None:
        fig.savefig(out_path)
        plt.close(fig)
    return fig


if __name__ == "__main__":
    # ---- usage: python -m rook_server.results.contract_rates <csv> [png] ----
    csv_path = sys.argv[1] if len(sys.argv) > 1 else "rook_server/results/rook_rounds_seed0_games1.csv"
    out_path = sys.argv[2] if len(sys.argv) > 2 else None

    rates = contract_rates(load_rounds(csv_path))
    print(rates.to_string(index=False))
    plot_contract_rates(rates, out_path)
    if out_path is None:
        plt.show()
