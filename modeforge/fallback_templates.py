# Deterministic artifacts used when the text-generation service cannot produce one.
# Rendered with BaseUtils.unsafe_string_format, so only {word} placeholders listed
# by the caller are substituted; C++/JSX braces pass through untouched.

MODULE_TEMPLATE = """// {class_name}: generated from the fallback template for "{device_type}".
// Features requested: {features}

#ifndef {guard}_MODULE_H
#define {guard}_MODULE_H

#include "../include/types.h"
#include <Arduino.h>

#define SENSITIVITY 0.5
#define ALERT_THRESHOLD 2.5
#define ALARM_TIMEOUT 5000

enum class {class_name}State {
    IDLE,
    ACTIVE,
    ALERT,
    LOW_POWER
};

class {class_name} {
private:
    {class_name}State currentState = {class_name}State::IDLE;

    uint32_t lastSampleMs = 0;
    uint32_t lastTransmitMs = 0;
    uint32_t alertStartMs = 0;
    static constexpr uint32_t SAMPLE_INTERVAL_ACTIVE = 100;
    static constexpr uint32_t SAMPLE_INTERVAL_IDLE = 1000;
    static constexpr uint32_t TRANSMIT_INTERVAL = 5000;
    static constexpr float FILTER_ALPHA = 0.2f;

    float filteredValue = 0.0f;
    float lastTransmitted = 0.0f;

    float applyEMAFilter(float newValue) {
        filteredValue = FILTER_ALPHA * newValue + (1.0f - FILTER_ALPHA) * filteredValue;
        return filteredValue;
    }

    void transitionState({class_name}State newState) {
        if (newState == currentState) return;
        currentState = newState;
        Serial.printf("[MODULE] state -> %d\\n", (int)currentState);
    }

public:
    void init() {
        Serial.println("[MODULE] {device_type_upper} mode activated (fallback)");
        transitionState({class_name}State::ACTIVE);
    }

    void update(const SensorData& data) {
        uint32_t now = millis();
        uint32_t interval = currentState == {class_name}State::ACTIVE ? SAMPLE_INTERVAL_ACTIVE : SAMPLE_INTERVAL_IDLE;
        if (now - lastSampleMs < interval) return;
        lastSampleMs = now;

        float magnitude = sqrtf(data.accelX * data.accelX + data.accelY * data.accelY + data.accelZ * data.accelZ);
        float motion = applyEMAFilter(fabsf(magnitude - 9.81f) * SENSITIVITY);

        if (motion > ALERT_THRESHOLD) {
            if (currentState != {class_name}State::ALERT) alertStartMs = now;
            transitionState({class_name}State::ALERT);
            handleAlert();
        } else if (currentState == {class_name}State::ALERT && now - alertStartMs > ALARM_TIMEOUT) {
            transitionState({class_name}State::ACTIVE);
        }

        display.drawGraph(motion, 0.0f, ALERT_THRESHOLD * 2.0f);
    }

    TelemetryData getTelemetry() {
        TelemetryData telemetry;
        telemetry.trackerState = (uint8_t)currentState;
        telemetry.isAlertActive = currentState == {class_name}State::ALERT;
        telemetry.motionIntensity = filteredValue;
        lastTransmitted = filteredValue;
        lastTransmitMs = millis();
        return telemetry;
    }

    void handleAlert() {
        display.showStatus("{device_type_upper}", "ALERT", 2);
    }

    void printDebug() {
        Serial.printf("State: %d Val: %.2f\\n", (int)currentState, filteredValue);
    }
};

#endif
"""

WIDGET_TEMPLATE = """import React, { useMemo } from 'react';
import { useDevice } from '../../contexts/DeviceContext';
import BentoCard from '../BentoCard';
import { AreaChart, Area, ResponsiveContainer } from 'recharts';

const {component_name} = () => {
    const { deviceData, telemetryHistory } = useDevice();
    const value = deviceData?.sensorValue ?? 0;
    const battery = deviceData?.batteryPercent ?? 100;

    const chartData = useMemo(() => (telemetryHistory || []).slice(-20).map((d, i) => ({
        time: i,
        value: d.sensorValue ?? 0
    })), [telemetryHistory]);

    return (
        <div className="grid grid-cols-2 md:grid-cols-4 gap-4">
            <div className="col-span-full mb-2">
                <h2 className="text-2xl font-bold text-white">{title} Mode</h2>
                <p className="text-gray-400 text-sm">{description}</p>
            </div>

            <BentoCard title="{primary_field}" value={value} unit="" color="blue" icon="⚡" size="lg">
                <div className="mt-4 h-24 -mx-2">
                    <ResponsiveContainer width="100%" height="100%">
                        <AreaChart data={chartData}>
                            <Area type="monotone" dataKey="value" stroke="#3B82F6" fillOpacity={0.2} fill="#3B82F6" />
                        </AreaChart>
                    </ResponsiveContainer>
                </div>
            </BentoCard>

            <BentoCard title="Battery" value={battery} unit="%" icon="🔋" color={battery > 20 ? "green" : "red"} size="sm" />
        </div>
    );
};

export default {component_name};
"""
