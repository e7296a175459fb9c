# frontend/tabs/balance_query.py
import gradio as gr

from core.dispatcher import parse_keys, pending_results, query_keys
from core.errors import BalanceCheckError
from core.results import QueryResult
from core.utils import PROVIDER_LABELS, get_provider_label, mask_key
from ..client import check_via_backend, save_results
from ..history import HistoryStore

RESULT_HEADERS = ["平台", "API Key", "状态", "余额", "总额", "已用", "币种", "错误"]
HISTORY_HEADERS = ["时间", "平台", "API Key", "状态", "余额", "币种"]
STATUS_LABELS = {"loading": "查询中...", "success": "✅ 成功", "error": "❌ 失败"}

history_store = HistoryStore()


def _fmt(value, digits=4):
    return "" if value is None else f"{float(value):.{digits}f}"


def result_rows(results):
    return [
        [
            get_provider_label(r.provider),
            mask_key(r.api_key),
            STATUS_LABELS.get(r.status, r.status),
            _fmt(r.balance) if r.status == "success" else "",
            _fmt(r.total),
            _fmt(r.used),
            r.currency or "",
            r.error or "",
        ]
        for r in results
    ]


def history_rows(entries):
    return [
        [
            e.get("timestamp", "")[:19].replace("T", " "),
            get_provider_label(e.get("provider", "")),
            mask_key(e.get("api_key", "")),
            STATUS_LABELS.get(e.get("status"), e.get("status")),
            _fmt(e.get("balance")),
            e.get("currency") or "",
        ]
        for e in entries
    ]


def summarize(results):
    success = sum(1 for r in results if r.status == "success")
    failed = sum(1 for r in results if r.status == "error")
    loading = sum(1 for r in results if r.status == "loading")
    text = f"查询结果 ({len(results)})　成功: {success}　失败: {failed}"
    if loading:
        text += f"　查询中: {loading}"
    return text


def count_keys(raw_text):
    return f"已输入 {len(parse_keys(raw_text))} 个 API Key"


async def run_query(raw_text, provider):
    """先展示 loading 行，全部查询结束后一次性替换为最终结果并写入本地历史"""
    keys = parse_keys(raw_text)
    if not keys:
        yield "请输入至少一个 API Key", [], [], history_rows(history_store.load())
        return

    pending = pending_results(keys, provider)
    yield summarize(pending), result_rows(pending), [], history_rows(history_store.load())

    results = await query_keys(keys, provider, checker=check_via_backend)
    try:
        entries = history_store.save(results)
    except OSError as e:
        entries = history_store.load()
        gr.Warning(f"保存本地历史失败: {e}")
    yield summarize(results), result_rows(results), [r.dict() for r in results], history_rows(entries)


def copy_valid_keys(state):
    valid = [r["api_key"] for r in state or [] if r.get("status") == "success"]
    if not valid:
        return "没有可用的 API Key"
    return "\n".join(valid)


def save_to_pool(state, abort_on_skip):
    results = [QueryResult(**r) for r in state or []]
    if not any(r.status == "success" for r in results):
        return "没有可用的 API Key 可以保存"
    try:
        report = save_results(results, abort_on_skip=abort_on_skip)
    except BalanceCheckError as e:
        return f"保存失败：{e.message}"
    except Exception as e:
        return f"请求异常: {e}"
    if report.get("aborted"):
        return f"有 {report['skipped']} 个 Key 余额不足 (≤ 0.1)，已取消保存"
    lines = [
        f"新增 {report['inserted']} 个",
        f"更新余额 {report['updated']} 个",
        f"余额无变化 {report['unchanged']} 个",
    ]
    if report.get("update_failed"):
        lines.append(f"更新失败 {report['update_failed']} 个")
    if report.get("skipped"):
        lines.append(f"余额不足已跳过 {report['skipped']} 个")
    return "保存完成：" + "，".join(lines)


def clear_history():
    try:
        history_store.clear()
    except OSError as e:
        return f"清空失败: {e}", history_rows(history_store.load())
    return "历史记录已清空", []


def create_tab():
    with gr.Tab("🔍 API余额查询"):
        with gr.Row():
            provider = gr.Dropdown(
                [(label, value) for value, label in PROVIDER_LABELS.items()],
                value="deepseek",
                label="选择模型平台"
            )
        keys_input = gr.Textbox(
            label="输入 API Keys（支持多个，一行一个或逗号分隔）",
            placeholder="sk-xxxxxxxxxxxxx\nsk-yyyyyyyyyyyyy\n或使用逗号分隔: sk-xxx, sk-yyy",
            lines=6
        )
        key_count = gr.Markdown(count_keys(""))
        query_btn = gr.Button("查询余额", variant="primary")

        summary = gr.Markdown()
        results_table = gr.Dataframe(headers=RESULT_HEADERS, label="查询结果", interactive=False)
        results_state = gr.State([])

        with gr.Row():
            copy_btn = gr.Button("一键复制所有可用API")
            abort_on_skip = gr.Checkbox(label="有余额不足的 Key 时取消保存", value=False)
            save_btn = gr.Button("一键保存到数据库")
        valid_keys = gr.Textbox(label="可用的 API Key", lines=4)
        save_result = gr.Textbox(label="保存结果", interactive=False)

        with gr.Accordion("本地查询历史（最近 50 条）", open=False):
            history_table = gr.Dataframe(
                headers=HISTORY_HEADERS,
                value=history_rows(history_store.load()),
                interactive=False
            )
            with gr.Row():
                clear_btn = gr.Button("清空历史")
                clear_result = gr.Textbox(label="", interactive=False)

        # 事件绑定
        keys_input.change(fn=count_keys, inputs=keys_input, outputs=key_count)

        query_btn.click(
            fn=run_query,
            inputs=[keys_input, provider],
            outputs=[summary, results_table, results_state, history_table]
        )

        copy_btn.click(fn=copy_valid_keys, inputs=results_state, outputs=valid_keys)

        save_btn.click(
            fn=save_to_pool,
            inputs=[results_state, abort_on_skip],
            outputs=save_result
        )

        clear_btn.click(fn=clear_history, outputs=[clear_result, history_table])
